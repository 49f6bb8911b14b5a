import asyncio
import contextlib
import logging
from enum import StrEnum
from typing import Awaitable, Callable

from fulfillment_common.cursors import CursorStore
from fulfillment_common.event_log import LATEST, EventLog, StreamRecord

logger = logging.getLogger(__name__)

RecordHandler = Callable[[StreamRecord], Awaitable[object]]


class ConsumerState(StrEnum):
    CONNECTING = "CONNECTING"
    LISTENING = "LISTENING"
    PROCESSING = "PROCESSING"
    RECONNECTING = "RECONNECTING"
    STOPPED = "STOPPED"


class StreamConsumer:
    """
    Sequential consumer of one stream.

    Records are handed to the handler one at a time, in log order. The cursor
    only moves past a record once the handler returned for it, so a failure
    in the log client, the cursor store or the handler itself leads to a
    backoff and a re-read from the same position.
    """

    def __init__(
        self,
        event_log: EventLog,
        stream: str,
        handler: RecordHandler,
        name: str,
        start_id: str = LATEST,
        cursor_store: CursorStore | None = None,
        block_ms: int = 5000,
        count: int = 10,
        retry_interval: float = 0.5,
        max_retry_interval: float = 5.0,
    ):
        self._event_log = event_log
        self._stream = stream
        self._handler = handler
        self._name = name
        self._start_id = start_id
        self._cursor_store = cursor_store
        self._block_ms = block_ms
        self._count = count
        self._retry_interval = retry_interval
        self._max_retry_interval = max_retry_interval

        self._state = ConsumerState.CONNECTING
        self._last_id: str | None = None
        self._failures = 0
        self._stopping = asyncio.Event()

    @property
    def state(self) -> ConsumerState:
        return self._state

    @property
    def last_id(self) -> str | None:
        return self._last_id

    def stop(self) -> None:
        self._stopping.set()

    async def run(self) -> None:
        logger.info(f"[{self._name}] Starting consumer on {self._stream}")
        try:
            while not self._stopping.is_set():
                try:
                    if self._last_id is None:
                        self._last_id = await self._load_cursor()
                    records = await self._read()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    await self._backoff(e)
                    continue

                if records is None:
                    break
                if not records:
                    self._recovered()
                self._state = ConsumerState.LISTENING

                for record in records:
                    if self._stopping.is_set():
                        break
                    try:
                        await self._process(record)
                    except asyncio.CancelledError:
                        raise
                    except Exception as e:
                        await self._backoff(e)
                        break
                    self._recovered()
                    self._state = ConsumerState.LISTENING
        finally:
            self._state = ConsumerState.STOPPED
            logger.info(f"[{self._name}] Consumer stopped at {self._last_id}")

    async def _load_cursor(self) -> str:
        if self._cursor_store is not None:
            saved = await self._cursor_store.load(self._name)
            if saved is not None:
                logger.info(f"[{self._name}] Resuming {self._stream} after {saved}")
                return saved
        if self._start_id != LATEST:
            logger.info(f"[{self._name}] Reading {self._stream} from {self._start_id}")
            return self._start_id

        # Pin "latest" to a concrete id, so records appended between two
        # reads, or while the consumer is down, are still delivered.
        tail = await self._event_log.tail_id(self._stream)
        if self._cursor_store is not None:
            await self._cursor_store.save(self._name, self._stream, tail)
        logger.info(f"[{self._name}] Reading {self._stream} after {tail}")
        return tail

    async def _read(self) -> list[StreamRecord] | None:
        """Blocking read that gives way to stop(); returns None when stopped."""
        read_task = asyncio.ensure_future(
            self._event_log.read(
                self._stream,
                self._last_id,
                block_ms=self._block_ms,
                count=self._count,
            )
        )
        stop_task = asyncio.ensure_future(self._stopping.wait())
        try:
            await asyncio.wait(
                {read_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (read_task, stop_task):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

        if read_task.cancelled():
            return None
        return read_task.result()

    async def _process(self, record: StreamRecord) -> None:
        self._state = ConsumerState.PROCESSING
        await self._handler(record)
        if self._cursor_store is not None:
            await self._cursor_store.save(self._name, self._stream, record.record_id)
        self._last_id = record.record_id

    async def _backoff(self, error: Exception) -> None:
        self._failures += 1
        self._state = ConsumerState.RECONNECTING
        if self._failures == 1:
            logger.error(
                f"[{self._name}] Lost {self._stream} at {self._last_id}, retrying: {error}",
                exc_info=True,
            )
        else:
            logger.debug(f"[{self._name}] Retry {self._failures} failed: {error}")

        delay = min(self._retry_interval * self._failures, self._max_retry_interval)
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)

    def _recovered(self) -> None:
        if self._failures:
            logger.info(
                f"[{self._name}] Recovered {self._stream} after {self._failures} failed attempts"
            )
            self._failures = 0
