import json
import logging

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer, TopicPartition

from fulfillment_common.event_log import (
    LATEST,
    StreamRecord,
    flatten_fields,
    unflatten_fields,
)

logger = logging.getLogger(__name__)


class KafkaEventLog:
    """
    Event log backed by single-partition Kafka topics, one per stream.

    The record id is the partition offset plus one, so "0" still reads the
    topic from its first offset. The record itself travels as a JSON list of
    alternating keys and values.
    """

    PARTITION = 0

    def __init__(self, bootstrap_servers: str):
        self._bootstrap_servers = bootstrap_servers
        self._producer: AIOKafkaProducer | None = None
        self._consumers: dict[str, AIOKafkaConsumer] = {}
        self._next_offsets: dict[str, int] = {}

    async def start(self):
        # Clients start on first use so a broker outage is a retryable error.
        pass

    async def stop(self):
        if self._producer:
            await self._producer.stop()
            self._producer = None
        for consumer in self._consumers.values():
            await consumer.stop()
        self._consumers.clear()
        self._next_offsets.clear()

    async def _get_producer(self) -> AIOKafkaProducer:
        if self._producer is None:
            producer = AIOKafkaProducer(
                bootstrap_servers=self._bootstrap_servers,
                value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            )
            try:
                await producer.start()
            except Exception:
                await producer.stop()
                raise
            self._producer = producer
        return self._producer

    async def _get_consumer(self, stream: str) -> AIOKafkaConsumer:
        if stream not in self._consumers:
            consumer = AIOKafkaConsumer(
                bootstrap_servers=self._bootstrap_servers,
                enable_auto_commit=False,
                value_deserializer=lambda m: json.loads(m.decode("utf-8")),
            )
            try:
                await consumer.start()
            except Exception:
                await consumer.stop()
                raise
            consumer.assign([TopicPartition(stream, self.PARTITION)])
            self._consumers[stream] = consumer
        return self._consumers[stream]

    async def append(self, stream: str, fields: dict[str, str]) -> str:
        producer = await self._get_producer()
        metadata = await producer.send_and_wait(
            stream, value=flatten_fields(fields), partition=self.PARTITION
        )
        return str(metadata.offset + 1)

    async def read(
        self,
        stream: str,
        after_id: str,
        block_ms: int,
        count: int,
    ) -> list[StreamRecord]:
        consumer = await self._get_consumer(stream)
        tp = TopicPartition(stream, self.PARTITION)

        if after_id == LATEST:
            if stream not in self._next_offsets:
                await consumer.seek_to_end(tp)
                self._next_offsets[stream] = await consumer.position(tp)
        else:
            wanted = int(after_id)
            if self._next_offsets.get(stream) != wanted:
                consumer.seek(tp, wanted)
                self._next_offsets[stream] = wanted

        batch = await consumer.getmany(tp, timeout_ms=block_ms, max_records=count)
        records = [
            StreamRecord(
                stream=stream,
                record_id=str(message.offset + 1),
                fields=unflatten_fields(message.value),
            )
            for message in batch.get(tp, [])
        ]
        if records:
            self._next_offsets[stream] = int(records[-1].record_id)
        return records

    async def tail_id(self, stream: str) -> str:
        # Offset of the next record, i.e. the id of the newest one.
        consumer = await self._get_consumer(stream)
        tp = TopicPartition(stream, self.PARTITION)
        await consumer.seek_to_end(tp)
        position = await consumer.position(tp)
        self._next_offsets[stream] = position
        return str(position)

    async def ping(self) -> None:
        producer = await self._get_producer()
        await producer.client.fetch_all_metadata()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
