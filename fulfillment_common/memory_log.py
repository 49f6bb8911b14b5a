import asyncio
from collections import defaultdict

from fulfillment_common.event_log import BEGINNING, LATEST, StreamRecord


def _sequence(record_id: str) -> int:
    return int(record_id.split("-", 1)[0])


class InMemoryEventLog:
    """Process-local event log, for single-process runs and tests."""

    def __init__(self):
        self._streams: dict[str, list[StreamRecord]] = defaultdict(list)
        self._changed = asyncio.Condition()

    async def start(self):
        pass

    async def stop(self):
        pass

    async def append(self, stream: str, fields: dict[str, str]) -> str:
        async with self._changed:
            records = self._streams[stream]
            record_id = f"{len(records) + 1}-0"
            records.append(
                StreamRecord(stream=stream, record_id=record_id, fields=dict(fields))
            )
            self._changed.notify_all()
        return record_id

    def records(self, stream: str) -> list[StreamRecord]:
        return list(self._streams[stream])

    async def read(
        self,
        stream: str,
        after_id: str,
        block_ms: int,
        count: int,
    ) -> list[StreamRecord]:
        async with self._changed:
            records = self._streams[stream]
            if after_id == LATEST:
                start = len(records)
            elif after_id == BEGINNING:
                start = 0
            else:
                start = _sequence(after_id)

            def available() -> bool:
                return len(records) > start

            if block_ms and not available():
                try:
                    await asyncio.wait_for(
                        self._changed.wait_for(available), timeout=block_ms / 1000
                    )
                except asyncio.TimeoutError:
                    return []
            return records[start : start + count]

    async def tail_id(self, stream: str) -> str:
        async with self._changed:
            records = self._streams[stream]
            return records[-1].record_id if records else BEGINNING

    async def ping(self) -> None:
        pass

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
