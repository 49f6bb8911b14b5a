from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment_common.unit_of_work import BaseUnitOfWork, Transaction
from order_service.infrastructure.repositories import (
    OrderRepository,
    OutboxRepository,
)


class OrderTransaction(Transaction):
    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.orders = OrderRepository(session)
        self.outbox = OutboxRepository(session)


class UnitOfWork(BaseUnitOfWork[OrderTransaction]):
    def _begin(self, session: AsyncSession) -> OrderTransaction:
        return OrderTransaction(session)
