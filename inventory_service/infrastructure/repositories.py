from pydantic import BaseModel, NonNegativeInt
from sqlalchemy import Row, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment_common.events import InventoryStatus
from inventory_service.core.models import ProcessedOrder, Product
from inventory_service.infrastructure.db_schema import (
    processed_orders_tbl,
    products_tbl,
)


class DoesNotExist(Exception):
    pass


class ProductRepository:
    class CreateDTO(BaseModel):
        name: str
        quantity: NonNegativeInt

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> Product:
        if row is None:
            raise DoesNotExist

        return Product(
            id=row._mapping["id"],
            name=row._mapping["name"],
            quantity=row._mapping["quantity"],
        )

    async def create(self, product: CreateDTO) -> Product:
        stmt = (
            insert(products_tbl)
            .values({"name": product.name, "quantity": product.quantity})
            .returning(*products_tbl.c)
        )
        result = await self._session.execute(stmt)
        return self._construct(result.fetchone())

    async def get_by_id(self, product_id: int) -> Product:
        stmt = select(products_tbl).where(products_tbl.c.id == product_id)
        result = await self._session.execute(stmt)
        row = result.fetchone()

        if row is None:
            raise DoesNotExist(f"Product with id {product_id} not found")

        return self._construct(row)

    async def reserve(self, product_id: int, quantity: int) -> bool:
        """
        Guarded decrement: takes quantity units only if that many are in
        stock. False when the product is missing or short, nothing changed.
        """
        stmt = (
            products_tbl.update()
            .where(
                products_tbl.c.id == product_id,
                products_tbl.c.quantity >= quantity,
            )
            .values(quantity=products_tbl.c.quantity - quantity)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1


class ProcessedOrderRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _construct(row: Row | None) -> ProcessedOrder:
        if row is None:
            raise DoesNotExist

        return ProcessedOrder(
            order_id=row._mapping["order_id"],
            status=row._mapping["status"],
            created_at=row._mapping["created_at"],
        )

    async def get(self, order_id: int) -> ProcessedOrder | None:
        stmt = select(processed_orders_tbl).where(
            processed_orders_tbl.c.order_id == order_id
        )
        result = await self._session.execute(stmt)
        row = result.fetchone()

        return self._construct(row) if row is not None else None

    async def create(self, order_id: int, status: InventoryStatus) -> ProcessedOrder:
        stmt = (
            insert(processed_orders_tbl)
            .values({"order_id": order_id, "status": status})
            .returning(*processed_orders_tbl.c)
        )
        result = await self._session.execute(stmt)
        return self._construct(result.fetchone())
