import logging

import redis.asyncio as aioredis

from fulfillment_common.event_log import BEGINNING, StreamRecord

logger = logging.getLogger(__name__)


class RedisStreamLog:
    """Event log backed by Redis streams (XADD / XREAD)."""

    def __init__(self, client: aioredis.Redis):
        # The client must be created with decode_responses=True.
        self._client = client

    async def start(self):
        # redis-py connects lazily; an unreachable server shows up on first use.
        pass

    async def stop(self):
        await self._client.aclose()

    async def append(self, stream: str, fields: dict[str, str]) -> str:
        record_id = await self._client.xadd(stream, fields)
        logger.debug(f"Appended {record_id} to {stream}")
        return record_id

    async def read(
        self,
        stream: str,
        after_id: str,
        block_ms: int,
        count: int,
    ) -> list[StreamRecord]:
        response = await self._client.xread(
            {stream: after_id}, count=count, block=block_ms or None
        )
        records = []
        for stream_name, entries in response or []:
            for record_id, fields in entries:
                records.append(
                    StreamRecord(stream=stream_name, record_id=record_id, fields=fields)
                )
        return records

    async def tail_id(self, stream: str) -> str:
        newest = await self._client.xrevrange(stream, count=1)
        return newest[0][0] if newest else BEGINNING

    async def ping(self) -> None:
        await self._client.ping()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
