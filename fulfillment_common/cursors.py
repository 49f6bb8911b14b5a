from typing import Protocol

from sqlalchemy import Column, DateTime, MetaData, Table, Text, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class CursorStore(Protocol):
    async def load(self, consumer: str) -> str | None: ...

    async def save(self, consumer: str, stream: str, record_id: str) -> None: ...


def cursor_table(metadata: MetaData) -> Table:
    return Table(
        "consumer_cursors",
        metadata,
        Column("consumer", Text, primary_key=True),
        Column("stream", Text, nullable=False),
        Column("last_record_id", Text, nullable=False),
        Column(
            "updated_at", DateTime, server_default=func.now(), onupdate=func.now()
        ),
    )


class SqlCursorStore:
    """Keeps the last processed record id of each consumer in its service's store."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], table: Table
    ) -> None:
        self._session_factory = session_factory
        self._table = table

    async def load(self, consumer: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(self._table.c.last_record_id).where(
                    self._table.c.consumer == consumer
                )
            )
            return result.scalar_one_or_none()

    async def save(self, consumer: str, stream: str, record_id: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                self._table.update()
                .where(self._table.c.consumer == consumer)
                .values(stream=stream, last_record_id=record_id)
            )
            if result.rowcount == 0:
                await session.execute(
                    insert(self._table).values(
                        consumer=consumer, stream=stream, last_record_id=record_id
                    )
                )
            await session.commit()
