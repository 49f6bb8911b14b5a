from dependency_injector import containers, providers
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fulfillment_common.container import EventLogContainer
from fulfillment_common.cursors import SqlCursorStore
from order_service.infrastructure.db_schema import consumer_cursors_tbl
from order_service.infrastructure.unit_of_work import UnitOfWork


class InfrastructureContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    async_engine = providers.Singleton[AsyncEngine](
        create_async_engine,
        config.db.dsn,
        pool_size=config.db.pool_size,
        pool_recycle=config.db.pool_recycle,
    )
    session_factory = providers.Factory[async_sessionmaker[AsyncSession]](
        async_sessionmaker, async_engine, expire_on_commit=False, class_=AsyncSession
    )
    unit_of_work = providers.Singleton[UnitOfWork](
        UnitOfWork, session_factory=session_factory
    )
    cursor_store = providers.Singleton[SqlCursorStore](
        SqlCursorStore, session_factory=session_factory, table=consumer_cursors_tbl
    )
    event_log_container = providers.Container[EventLogContainer](
        EventLogContainer, config=config.event_log
    )
