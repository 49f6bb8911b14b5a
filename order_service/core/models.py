from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel


class OrderStatusEnum(StrEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItem(CamelModel):
    product_id: int
    price: Decimal = Field(max_digits=10, decimal_places=2)
    quantity: PositiveInt


class OrderItem(CamelModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Decimal


class Order(CamelModel):
    id: int
    user_id: int
    total_price: Decimal
    status: OrderStatusEnum
    created_at: datetime | None = None
    items: list[OrderItem] = []


class PlacedOrder(CamelModel):
    order_id: int
    item_count: int


InitialOrderStatus = Literal[OrderStatusEnum.PENDING, OrderStatusEnum.COMPLETED]


class EventTypeEnum(StrEnum):
    ORDER_PLACED = "OrderPlaced"


class OutboxEventStatus(StrEnum):
    PENDING = "PENDING"
    SENT = "SENT"


class OutboxEvent(BaseModel):
    id: int
    event_type: EventTypeEnum
    stream: str
    payload: dict[str, str]
    status: OutboxEventStatus
    created_at: datetime
