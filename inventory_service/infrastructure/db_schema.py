from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)

from fulfillment_common.cursors import cursor_table

metadata = MetaData()

products_tbl = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("quantity", Integer, nullable=False, server_default="0"),
    CheckConstraint("quantity >= 0", name="products_quantity_non_negative"),
)

processed_orders_tbl = Table(
    "processed_orders",
    metadata,
    Column("order_id", Integer, primary_key=True, autoincrement=False),
    Column("status", String(50), nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
)

consumer_cursors_tbl = cursor_table(metadata)
