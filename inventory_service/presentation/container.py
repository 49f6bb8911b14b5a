from dependency_injector import containers, providers

from inventory_service.application.container import ApplicationContainer
from inventory_service.presentation.reconciler_worker import ReconcilerWorker


class PresentationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    application = providers.Container[ApplicationContainer](
        ApplicationContainer, config=config
    )

    reconciler_worker = providers.Singleton[ReconcilerWorker](
        ReconcilerWorker,
        reserve_inventory_use_case=application.reserve_inventory_use_case,
        event_log=application.infrastructure_container.event_log_container.event_log,
        cursor_store=application.infrastructure_container.cursor_store,
        name=config.consumer.name,
        start_id=config.consumer.start_id,
        block_ms=config.consumer.block_ms,
        count=config.consumer.count,
        retry_interval=config.consumer.retry_interval,
        max_retry_interval=config.consumer.max_retry_interval,
    )
