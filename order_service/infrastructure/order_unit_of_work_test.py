from decimal import Decimal

import pytest

from order_service.core.models import OrderStatusEnum
from order_service.infrastructure.repositories import (
    DoesNotExist,
    OrderRepository,
    OutboxRepository,
)
from order_service.infrastructure.unit_of_work import UnitOfWork


def order_dto(items) -> OrderRepository.CreateDTO:
    return OrderRepository.CreateDTO(
        user_id=1,
        items=items,
        total_price=Decimal("10.50"),
        status=OrderStatusEnum.PENDING,
    )


class TestUnitOfWork:
    @pytest.mark.asyncio
    async def test_provides_repositories(self, order_uow: UnitOfWork):
        # Given/When
        async with order_uow() as unit:
            # Then
            assert isinstance(unit.orders, OrderRepository)
            assert isinstance(unit.outbox, OutboxRepository)

    @pytest.mark.asyncio
    async def test_commit_persists_changes(self, order_uow: UnitOfWork, cart_item_factory):
        # When
        async with order_uow() as unit:
            order = await unit.orders.create(order_dto([cart_item_factory()]))
            await unit.commit()

        # Then - visible from a new session
        async with order_uow() as unit:
            persisted = await unit.orders.get_by_id(order.id)
        assert persisted.user_id == 1

    @pytest.mark.asyncio
    async def test_rollback_on_exception(self, order_uow: UnitOfWork, cart_item_factory):
        # When
        with pytest.raises(Exception, match="Test error"):
            async with order_uow() as unit:
                order = await unit.orders.create(order_dto([cart_item_factory()]))
                order_id = order.id
                raise Exception("Test error")

        # Then
        async with order_uow() as unit:
            with pytest.raises(DoesNotExist):
                await unit.orders.get_by_id(order_id)

    @pytest.mark.asyncio
    async def test_rollback_without_commit(self, order_uow: UnitOfWork, cart_item_factory):
        # When
        async with order_uow() as unit:
            order = await unit.orders.create(order_dto([cart_item_factory()]))
            order_id = order.id

        # Then
        async with order_uow() as unit:
            with pytest.raises(DoesNotExist):
                await unit.orders.get_by_id(order_id)
