from fulfillment_common.consumer import StreamConsumer
from fulfillment_common.cursors import CursorStore
from fulfillment_common.event_log import LATEST, EventLog
from fulfillment_common.events import INVENTORY_STREAM
from order_service.application.finalize_order import FinalizeOrderUseCase


class EventConsumerWorker:
    """Order Finalizer: applies inventory_stream outcomes to orders."""

    def __init__(
        self,
        finalize_order_use_case: FinalizeOrderUseCase,
        event_log: EventLog,
        cursor_store: CursorStore | None = None,
        name: str = "order-finalizer",
        start_id: str = LATEST,
        block_ms: int = 5000,
        count: int = 10,
        retry_interval: float = 0.5,
        max_retry_interval: float = 5.0,
    ):
        self._consumer = StreamConsumer(
            event_log=event_log,
            stream=INVENTORY_STREAM,
            handler=finalize_order_use_case,
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
