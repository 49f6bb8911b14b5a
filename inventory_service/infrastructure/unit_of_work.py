from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment_common.unit_of_work import BaseUnitOfWork, Transaction
from inventory_service.infrastructure.repositories import (
    ProcessedOrderRepository,
    ProductRepository,
)


class InventoryTransaction(Transaction):
    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.products = ProductRepository(session)
        self.processed_orders = ProcessedOrderRepository(session)


class UnitOfWork(BaseUnitOfWork[InventoryTransaction]):
    def _begin(self, session: AsyncSession) -> InventoryTransaction:
        return InventoryTransaction(session)
