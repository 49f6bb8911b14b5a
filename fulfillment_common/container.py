import redis.asyncio as aioredis
from dependency_injector import containers, providers

from fulfillment_common.kafka_log import KafkaEventLog
from fulfillment_common.memory_log import InMemoryEventLog
from fulfillment_common.redis_log import RedisStreamLog


class EventLogContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    redis_client = providers.Singleton[aioredis.Redis](
        aioredis.from_url,
        config.redis.url,
        decode_responses=True,
    )
    event_log = providers.Selector(
        config.backend,
        redis=providers.Singleton[RedisStreamLog](RedisStreamLog, client=redis_client),
        kafka=providers.Singleton[KafkaEventLog](
            KafkaEventLog, bootstrap_servers=config.kafka.bootstrap_servers
        ),
        memory=providers.Singleton[InMemoryEventLog](InMemoryEventLog),
    )
