from pathlib import Path
from typing import Awaitable, Callable

import pytest
import pytest_asyncio
from dependency_injector import providers
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fulfillment_common.memory_log import InMemoryEventLog
from inventory_service import main as inventory_main
from inventory_service.application.container import (
    ApplicationContainer as InventoryApplicationContainer,
)
from inventory_service.core.models import Product
from inventory_service.infrastructure.db_schema import metadata as inventory_metadata
from inventory_service.infrastructure.repositories import ProductRepository
from inventory_service.infrastructure.unit_of_work import (
    UnitOfWork as InventoryUnitOfWork,
)
from order_service import main as order_main
from order_service.application.container import (
    ApplicationContainer as OrderApplicationContainer,
)
from order_service.core.models import CartItem
from order_service.infrastructure.db_schema import metadata as order_metadata
from order_service.infrastructure.repositories import OutboxRepository
from order_service.infrastructure.unit_of_work import UnitOfWork as OrderUnitOfWork


async def _prepare(container, metadata, dsn: str):
    container.config.infrastructure.event_log.backend.from_value("memory")
    container.infrastructure_container.async_engine.override(
        providers.Singleton(create_async_engine, dsn)
    )
    engine = container.infrastructure_container.async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    return engine


@pytest.fixture
def event_log() -> InMemoryEventLog:
    return InMemoryEventLog()


# Order service


@pytest_asyncio.fixture()
async def order_container(tmp_path: Path) -> OrderApplicationContainer:
    container = OrderApplicationContainer()
    container.config.from_yaml(order_main.CONFIG_PATH, required=True)
    engine = await _prepare(
        container, order_metadata, f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}"
    )
    yield container
    await engine.dispose()


@pytest.fixture()
def order_session_factory(
    order_container: OrderApplicationContainer,
) -> async_sessionmaker[AsyncSession]:
    return order_container.infrastructure_container.session_factory()


@pytest_asyncio.fixture()
async def order_session(
    order_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncSession:
    async with order_session_factory() as session:
        yield session


@pytest.fixture()
def order_uow(
    order_session_factory: async_sessionmaker[AsyncSession],
) -> OrderUnitOfWork:
    return OrderUnitOfWork(order_session_factory)


@pytest.fixture
def outbox_repo(order_session: AsyncSession) -> OutboxRepository:
    return OutboxRepository(order_session)


@pytest.fixture
def cart_item_factory():
    def _create_item(**kwargs):
        defaults = {
            "product_id": 1,
            "price": "10.50",
            "quantity": 1,
        }
        defaults.update(kwargs)
        return CartItem(**defaults)

    return _create_item


@pytest_asyncio.fixture()
async def order_api_client(order_container: OrderApplicationContainer) -> AsyncClient:
    app = order_main.build_api(order_container)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test.com",
    ) as client:
        client.app = app
        yield client


# Inventory service


@pytest_asyncio.fixture()
async def inventory_container(tmp_path: Path) -> InventoryApplicationContainer:
    container = InventoryApplicationContainer()
    container.config.from_yaml(inventory_main.CONFIG_PATH, required=True)
    engine = await _prepare(
        container,
        inventory_metadata,
        f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}",
    )
    yield container
    await engine.dispose()


@pytest.fixture()
def inventory_session_factory(
    inventory_container: InventoryApplicationContainer,
) -> async_sessionmaker[AsyncSession]:
    return inventory_container.infrastructure_container.session_factory()


@pytest.fixture()
def inventory_uow(
    inventory_session_factory: async_sessionmaker[AsyncSession],
) -> InventoryUnitOfWork:
    return InventoryUnitOfWork(inventory_session_factory)


@pytest.fixture
def product_factory(
    inventory_uow: InventoryUnitOfWork,
) -> Callable[..., Awaitable[Product]]:
    async def _create_product(quantity: int, name: str = "Test product") -> Product:
        async with inventory_uow() as uow:
            product = await uow.products.create(
                ProductRepository.CreateDTO(name=name, quantity=quantity)
            )
            await uow.commit()
        return product

    return _create_product


@pytest.fixture
def stock_of(inventory_uow: InventoryUnitOfWork) -> Callable[[int], Awaitable[int]]:
    async def _stock_of(product_id: int) -> int:
        async with inventory_uow() as uow:
            product = await uow.products.get_by_id(product_id)
        return product.quantity

    return _stock_of


@pytest_asyncio.fixture()
async def inventory_api_client(
    inventory_container: InventoryApplicationContainer,
) -> AsyncClient:
    app = inventory_main.build_api(inventory_container)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test.com",
    ) as client:
        client.app = app
        yield client
