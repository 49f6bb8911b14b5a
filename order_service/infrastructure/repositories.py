from collections import defaultdict
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Row, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from order_service.core.models import (
    CartItem,
    EventTypeEnum,
    Order,
    OrderItem,
    OrderStatusEnum,
    OutboxEvent,
    OutboxEventStatus,
)
from order_service.infrastructure.db_schema import (
    order_items_tbl,
    orders_tbl,
    outbox_tbl,
)


class DoesNotExist(Exception):
    pass


class OrderRepository:
    class CreateDTO(BaseModel):
        user_id: int
        total_price: Decimal
        status: OrderStatusEnum
        items: list[CartItem]

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct_item(row: Row) -> OrderItem:
        return OrderItem(
            id=row._mapping["id"],
            order_id=row._mapping["order_id"],
            product_id=row._mapping["product_id"],
            quantity=row._mapping["quantity"],
            price=row._mapping["price"],
        )

    @staticmethod
    def _construct(row: Row | None, items: list[OrderItem]) -> Order:
        if row is None:
            raise DoesNotExist

        return Order(
            id=row._mapping["id"],
            user_id=row._mapping["user_id"],
            total_price=row._mapping["total_price"],
            status=row._mapping["status"],
            created_at=row._mapping["created_at"],
            items=items,
        )

    async def create(self, order: CreateDTO) -> Order:
        stmt_order = (
            insert(orders_tbl)
            .values(
                {
                    "user_id": order.user_id,
                    "total_price": order.total_price,
                    "status": order.status,
                }
            )
            .returning(*orders_tbl.c)
        )
        result_order = await self._session.execute(stmt_order)
        order_row = result_order.one()

        items = []
        if order.items:
            stmt_items = (
                insert(order_items_tbl)
                .values(
                    [
                        {
                            "order_id": order_row.id,
                            "product_id": item.product_id,
                            "quantity": item.quantity,
                            "price": item.price,
                        }
                        for item in order.items
                    ]
                )
                .returning(*order_items_tbl.c)
            )
            result_items = await self._session.execute(stmt_items)
            items = sorted(
                (self._construct_item(row) for row in result_items.fetchall()),
                key=lambda item: item.id,
            )

        return self._construct(order_row, items)

    async def _get_items(self, order_ids: list[int]) -> dict[int, list[OrderItem]]:
        stmt = (
            select(order_items_tbl)
            .where(order_items_tbl.c.order_id.in_(order_ids))
            .order_by(order_items_tbl.c.id)
        )
        result = await self._session.execute(stmt)

        items: dict[int, list[OrderItem]] = defaultdict(list)
        for row in result.fetchall():
            item = self._construct_item(row)
            items[item.order_id].append(item)
        return items

    async def get_by_id(self, order_id: int) -> Order:
        stmt = select(orders_tbl).where(orders_tbl.c.id == order_id)
        result = await self._session.execute(stmt)
        row = result.fetchone()

        if row is None:
            raise DoesNotExist(f"Order with id {order_id} not found")

        items = await self._get_items([order_id])
        return self._construct(row, items[order_id])

    async def list_by_user(self, user_id: int) -> list[Order]:
        stmt = (
            select(orders_tbl)
            .where(orders_tbl.c.user_id == user_id)
            .order_by(orders_tbl.c.id.desc())
        )
        result = await self._session.execute(stmt)
        rows = result.fetchall()
        if not rows:
            return []

        items = await self._get_items([row.id for row in rows])
        return [self._construct(row, items[row.id]) for row in rows]

    async def finalize(self, order_id: int, status: OrderStatusEnum) -> bool:
        """Move a PENDING order to status; False when the order is not PENDING."""
        stmt = (
            orders_tbl.update()
            .where(
                orders_tbl.c.id == order_id,
                orders_tbl.c.status == OrderStatusEnum.PENDING,
            )
            .values(status=status)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1


class OutboxRepository:
    class CreateDTO(BaseModel):
        event_type: EventTypeEnum
        stream: str
        payload: dict[str, str]

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> OutboxEvent:
        if row is None:
            raise DoesNotExist

        return OutboxEvent(
            id=row._mapping["id"],
            event_type=row._mapping["event_type"],
            stream=row._mapping["stream"],
            payload=row._mapping["payload"],
            status=row._mapping["status"],
            created_at=row._mapping["created_at"],
        )

    async def create(self, event: CreateDTO) -> OutboxEvent:
        stmt = (
            insert(outbox_tbl)
            .values(
                {
                    "event_type": event.event_type,
                    "stream": event.stream,
                    "payload": event.payload,
                    "status": OutboxEventStatus.PENDING,
                }
            )
            .returning(*outbox_tbl.c)
        )
        result = await self._session.execute(stmt)
        row = result.fetchone()

        return self._construct(row)

    async def get_pending_events(self, limit: int = 100) -> list[OutboxEvent]:
        stmt = (
            select(outbox_tbl)
            .where(outbox_tbl.c.status == OutboxEventStatus.PENDING)
            .order_by(outbox_tbl.c.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        rows = result.fetchall()

        return [self._construct(row) for row in rows]

    async def mark_as_sent(self, event_id: int) -> None:
        stmt = (
            outbox_tbl.update()
            .where(outbox_tbl.c.id == event_id)
            .values(status=OutboxEventStatus.SENT)
        )
        await self._session.execute(stmt)
