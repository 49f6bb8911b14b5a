import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiokafka import TopicPartition

from fulfillment_common import kafka_log
from fulfillment_common.event_log import LATEST
from fulfillment_common.kafka_log import KafkaEventLog


@pytest.fixture
def producer(monkeypatch):
    """Mock AIOKafkaProducer"""
    producer = MagicMock()
    producer.start = AsyncMock()
    producer.stop = AsyncMock()
    producer.send_and_wait = AsyncMock(return_value=SimpleNamespace(offset=41))
    producer.client.fetch_all_metadata = AsyncMock()
    producer_cls = MagicMock(return_value=producer)
    monkeypatch.setattr(kafka_log, "AIOKafkaProducer", producer_cls)
    return producer


@pytest.fixture
def consumer(monkeypatch):
    """Mock AIOKafkaConsumer"""
    consumer = MagicMock()
    consumer.start = AsyncMock()
    consumer.stop = AsyncMock()
    consumer.seek_to_end = AsyncMock()
    consumer.position = AsyncMock(return_value=10)
    consumer.getmany = AsyncMock(return_value={})
    consumer_cls = MagicMock(return_value=consumer)
    monkeypatch.setattr(kafka_log, "AIOKafkaConsumer", consumer_cls)
    return consumer


class TestKafkaEventLog:
    @pytest.mark.asyncio
    async def test_append_sends_flat_record_and_returns_offset(self, producer):
        # Given
        log = KafkaEventLog(bootstrap_servers="kafka:9092")

        # When
        record_id = await log.append("orders_stream", {"order_id": "5", "products": "[]"})

        # Then
        assert record_id == "42"
        producer.start.assert_awaited_once()
        producer.send_and_wait.assert_awaited_once_with(
            "orders_stream", value=["order_id", "5", "products", "[]"], partition=0
        )

    @pytest.mark.asyncio
    async def test_failed_start_is_retried_on_next_append(self, producer):
        # Given
        log = KafkaEventLog(bootstrap_servers="kafka:9092")
        producer.start.side_effect = [ConnectionError("broker down"), None]

        # When
        with pytest.raises(ConnectionError):
            await log.append("orders_stream", {"order_id": "5"})
        record_id = await log.append("orders_stream", {"order_id": "5"})

        # Then
        assert record_id == "42"
        assert producer.start.await_count == 2

    @pytest.mark.asyncio
    async def test_read_latest_seeks_to_end_once(self, consumer):
        # Given
        log = KafkaEventLog(bootstrap_servers="kafka:9092")
        tp = TopicPartition("orders_stream", 0)

        # When
        await log.read("orders_stream", LATEST, block_ms=100, count=10)
        await log.read("orders_stream", LATEST, block_ms=100, count=10)

        # Then
        consumer.assign.assert_called_once_with([tp])
        consumer.seek_to_end.assert_awaited_once_with(tp)
        consumer.getmany.assert_awaited_with(tp, timeout_ms=100, max_records=10)

    @pytest.mark.asyncio
    async def test_read_from_record_id_seeks_to_next_offset(self, consumer):
        # Given
        log = KafkaEventLog(bootstrap_servers="kafka:9092")
        tp = TopicPartition("inventory_stream", 0)
        message = SimpleNamespace(
            offset=7,
            value=json.loads('["order_id", "3", "status", "FAILED"]'),
        )
        consumer.getmany.return_value = {tp: [message]}

        # When
        records = await log.read("inventory_stream", "7", block_ms=100, count=10)

        # Then
        consumer.seek.assert_called_once_with(tp, 7)
        assert len(records) == 1
        assert records[0].record_id == "8"
        assert records[0].fields == {"order_id": "3", "status": "FAILED"}

    @pytest.mark.asyncio
    async def test_tail_id_is_end_offset_and_reads_continue_from_it(self, consumer):
        # Given
        log = KafkaEventLog(bootstrap_servers="kafka:9092")
        tp = TopicPartition("orders_stream", 0)

        # When
        tail = await log.tail_id("orders_stream")
        await log.read("orders_stream", tail, block_ms=100, count=10)

        # Then
        assert tail == "10"
        consumer.seek_to_end.assert_awaited_once_with(tp)
        consumer.seek.assert_not_called()

    @pytest.mark.asyncio
    async def test_stop_closes_started_clients(self, producer, consumer):
        # Given
        log = KafkaEventLog(bootstrap_servers="kafka:9092")
        await log.append("orders_stream", {"order_id": "1"})
        await log.read("orders_stream", LATEST, block_ms=100, count=10)

        # When
        await log.stop()

        # Then
        producer.stop.assert_awaited_once()
        consumer.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ping_fetches_metadata(self, producer):
        log = KafkaEventLog(bootstrap_servers="kafka:9092")

        await log.ping()

        producer.client.fetch_all_metadata.assert_awaited_once()
