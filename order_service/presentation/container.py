from dependency_injector import containers, providers

from order_service.application.container import ApplicationContainer
from order_service.presentation.event_consumer_worker import EventConsumerWorker
from order_service.presentation.outbox_worker import OutboxWorker


class PresentationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    application = providers.Container[ApplicationContainer](
        ApplicationContainer, config=config
    )

    outbox_worker = providers.Singleton[OutboxWorker](
        OutboxWorker,
        use_case=application.process_outbox_events_use_case,
        interval=config.outbox.poll_interval,
    )
    event_consumer_worker = providers.Singleton[EventConsumerWorker](
        EventConsumerWorker,
        finalize_order_use_case=application.finalize_order_use_case,
        event_log=application.infrastructure_container.event_log_container.event_log,
        cursor_store=application.infrastructure_container.cursor_store,
        name=config.consumer.name,
        start_id=config.consumer.start_id,
        block_ms=config.consumer.block_ms,
        count=config.consumer.count,
        retry_interval=config.consumer.retry_interval,
        max_retry_interval=config.consumer.max_retry_interval,
    )
