from datetime import datetime

from pydantic import BaseModel, NonNegativeInt

from fulfillment_common.events import InventoryStatus


class Product(BaseModel):
    id: int
    name: str
    quantity: NonNegativeInt


class ProcessedOrder(BaseModel):
    """Outcome already applied for an order; makes redelivery a no-op."""

    order_id: int
    status: InventoryStatus
    created_at: datetime
