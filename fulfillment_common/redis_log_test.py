import pytest
import pytest_asyncio
from fakeredis import aioredis as fake_aioredis

from fulfillment_common.event_log import BEGINNING
from fulfillment_common.redis_log import RedisStreamLog


@pytest_asyncio.fixture()
async def redis_log() -> RedisStreamLog:
    log = RedisStreamLog(client=fake_aioredis.FakeRedis(decode_responses=True))
    async with log:
        yield log


class TestRedisStreamLog:
    @pytest.mark.asyncio
    async def test_append_and_read_keeps_field_order(self, redis_log: RedisStreamLog):
        # Given
        fields = {"order_id": "12", "products": '[{"product_id": 1}]'}

        # When
        record_id = await redis_log.append("orders_stream", fields)
        records = await redis_log.read("orders_stream", BEGINNING, block_ms=10, count=10)

        # Then
        assert len(records) == 1
        assert records[0].record_id == record_id
        assert records[0].stream == "orders_stream"
        assert list(records[0].fields.items()) == list(fields.items())

    @pytest.mark.asyncio
    async def test_read_after_record_id(self, redis_log: RedisStreamLog):
        # Given
        first = await redis_log.append("inventory_stream", {"order_id": "1"})
        second = await redis_log.append("inventory_stream", {"order_id": "2"})

        # When
        records = await redis_log.read("inventory_stream", first, block_ms=10, count=10)

        # Then
        assert [r.record_id for r in records] == [second]
        assert records[0].fields == {"order_id": "2"}

    @pytest.mark.asyncio
    async def test_ping(self, redis_log: RedisStreamLog):
        await redis_log.ping()

    @pytest.mark.asyncio
    async def test_tail_id(self, redis_log: RedisStreamLog):
        # Given
        assert await redis_log.tail_id("orders_stream") == BEGINNING
        await redis_log.append("orders_stream", {"order_id": "1"})
        newest = await redis_log.append("orders_stream", {"order_id": "2"})

        # When
        tail = await redis_log.tail_id("orders_stream")
        records = await redis_log.read("orders_stream", tail, block_ms=0, count=10)

        # Then
        assert tail == newest
        assert records == []
