from fulfillment_common.consumer import StreamConsumer
from fulfillment_common.cursors import CursorStore
from fulfillment_common.event_log import LATEST, EventLog
from fulfillment_common.events import ORDERS_STREAM
from inventory_service.application.reserve_inventory import ReserveInventoryUseCase


class ReconcilerWorker:
    """Inventory Reconciler: reserves stock for every order on orders_stream."""

    def __init__(
        self,
        reserve_inventory_use_case: ReserveInventoryUseCase,
        event_log: EventLog,
        cursor_store: CursorStore | None = None,
        name: str = "inventory-reconciler",
        start_id: str = LATEST,
        block_ms: int = 5000,
        count: int = 10,
        retry_interval: float = 0.5,
        max_retry_interval: float = 5.0,
    ):
        self._consumer = StreamConsumer(
            event_log=event_log,
            stream=ORDERS_STREAM,
            handler=reserve_inventory_use_case,
            name=name,
            start_id=start_id,
            cursor_store=cursor_store,
            block_ms=block_ms,
            count=count,
            retry_interval=retry_interval,
            max_retry_interval=max_retry_interval,
        )

    @property
    def consumer(self) -> StreamConsumer:
        return self._consumer

    def stop(self) -> None:
        self._consumer.stop()

    async def run(self):
        await self._consumer.run()
