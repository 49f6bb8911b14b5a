import json
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, PositiveInt, TypeAdapter, ValidationError

ORDERS_STREAM = "orders_stream"
INVENTORY_STREAM = "inventory_stream"


class MalformedEventError(ValueError):
    pass


class InventoryStatus(StrEnum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class OrderedProduct(BaseModel):
    product_id: int
    price: Decimal
    quantity: PositiveInt


_products_adapter = TypeAdapter(list[OrderedProduct])


class OrderPlaced(BaseModel):
    """Published on orders_stream once an order is committed."""

    order_id: int
    products: list[OrderedProduct]

    def to_fields(self) -> dict[str, str]:
        return {
            "order_id": str(self.order_id),
            "products": json.dumps(
                [product.model_dump(mode="json") for product in self.products]
            ),
        }

    @classmethod
    def from_fields(cls, fields: dict[str, str]) -> "OrderPlaced":
        try:
            return cls(
                order_id=fields["order_id"],
                products=_products_adapter.validate_json(fields["products"]),
            )
        except (KeyError, ValidationError) as e:
            raise MalformedEventError(f"Invalid OrderPlaced event: {e}") from e


class InventoryUpdated(BaseModel):
    """Published on inventory_stream with the reservation outcome of an order."""

    order_id: int
    status: InventoryStatus

    def to_fields(self) -> dict[str, str]:
        return {"order_id": str(self.order_id), "status": str(self.status)}

    @classmethod
    def from_fields(cls, fields: dict[str, str]) -> "InventoryUpdated":
        try:
            return cls(order_id=fields["order_id"], status=fields["status"])
        except (KeyError, ValidationError) as e:
            raise MalformedEventError(f"Invalid InventoryUpdated event: {e}") from e


def order_id_of(fields: dict[str, str]) -> int | None:
    """Best-effort order id of a record whose other fields may be unusable."""
    try:
        return int(fields["order_id"])
    except (KeyError, ValueError):
        return None
