import asyncio
import contextlib
import logging

from order_service.application.process_outbox_events import ProcessOutboxEventsUseCase

logger = logging.getLogger(__name__)


class OutboxWorker:
    def __init__(
        self,
        use_case: ProcessOutboxEventsUseCase,
        interval: float = 0.1,
        max_retry_interval: float = 5.0,
    ):
        self._use_case = use_case
        self._interval = interval
        self._max_retry_interval = max_retry_interval
        self._failures = 0
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        self._stopping.set()

    async def run(self):
        while not self._stopping.is_set():
            try:
                await self._use_case()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._failures += 1
                if self._failures == 1:
                    logger.error(f"Outbox relay failing, will retry: {e}", exc_info=True)
            else:
                if self._failures:
                    logger.info(f"Outbox relay recovered after {self._failures} failures")
                    self._failures = 0

            delay = min(
                self._interval * (self._failures + 1), self._max_retry_interval
            )
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
