import logging
from decimal import Decimal

from pydantic import Field

from fulfillment_common.events import ORDERS_STREAM, OrderedProduct, OrderPlaced
from order_service.core.models import (
    CamelModel,
    CartItem,
    EventTypeEnum,
    InitialOrderStatus,
    OrderStatusEnum,
    PlacedOrder,
)
from order_service.infrastructure.repositories import OrderRepository, OutboxRepository
from order_service.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class OrderDTO(CamelModel):
    total_price: Decimal = Field(max_digits=10, decimal_places=2)
    status: InitialOrderStatus | None = None
    items: list[CartItem] = Field(min_length=1)


class CreateOrderUseCase:
    """
    Writes the order, its items and the OrderPlaced outbox row in one
    transaction. The outbox relay publishes the event after commit.
    """

    def __init__(
        self,
        unit_of_work: UnitOfWork,
    ):
        self._unit_of_work = unit_of_work

    async def __call__(self, user_id: int, order: OrderDTO) -> PlacedOrder:
        async with self._unit_of_work() as uow:
            created = await uow.orders.create(
                order=OrderRepository.CreateDTO(
                    user_id=user_id,
                    total_price=order.total_price,
                    status=order.status or OrderStatusEnum.PENDING,
                    items=order.items,
                )
            )
            event = OrderPlaced(
                order_id=created.id,
                products=[
                    OrderedProduct(
                        product_id=item.product_id,
                        price=item.price,
                        quantity=item.quantity,
                    )
                    for item in order.items
                ],
            )
            await uow.outbox.create(
                event=OutboxRepository.CreateDTO(
                    event_type=EventTypeEnum.ORDER_PLACED,
                    stream=ORDERS_STREAM,
                    payload=event.to_fields(),
                )
            )
            await uow.commit()

        logger.info(
            f"Order {created.id} created for user {user_id} with {len(created.items)} items"
        )
        return PlacedOrder(order_id=created.id, item_count=len(created.items))
