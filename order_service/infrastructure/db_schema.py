from sqlalchemy import (
    DECIMAL,
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)

from fulfillment_common.cursors import cursor_table

metadata = MetaData()

orders_tbl = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Owned by the auth service, no foreign key.
    Column("user_id", Integer, nullable=False, index=True),
    Column("total_price", DECIMAL(10, 2), nullable=False),
    Column("status", String(50), nullable=False),
    Column("created_at", DateTime, server_default=func.now()),
)

order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "order_id",
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # Owned by the inventory service, no foreign key.
    Column("product_id", Integer, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", DECIMAL(10, 2), nullable=False),
    CheckConstraint("quantity > 0", name="order_items_quantity_positive"),
)

outbox_tbl = Table(
    "outbox",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_type", Text, nullable=False),
    Column("stream", Text, nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", Text, nullable=False, index=True),
    Column("created_at", DateTime, server_default=func.now()),
)

consumer_cursors_tbl = cursor_table(metadata)
