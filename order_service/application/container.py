from dependency_injector import containers, providers

from order_service.application.create_order import CreateOrderUseCase
from order_service.application.finalize_order import FinalizeOrderUseCase
from order_service.application.process_outbox_events import ProcessOutboxEventsUseCase
from order_service.infrastructure.container import InfrastructureContainer


class ApplicationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    infrastructure_container = providers.Container[InfrastructureContainer](
        InfrastructureContainer,
        config=config.infrastructure,
    )

    create_order_use_case = providers.Singleton[CreateOrderUseCase](
        CreateOrderUseCase, unit_of_work=infrastructure_container.unit_of_work
    )
    process_outbox_events_use_case = providers.Singleton[ProcessOutboxEventsUseCase](
        ProcessOutboxEventsUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        event_log=infrastructure_container.event_log_container.event_log,
        batch_size=config.outbox.batch_size,
    )
    finalize_order_use_case = providers.Singleton[FinalizeOrderUseCase](
        FinalizeOrderUseCase, unit_of_work=infrastructure_container.unit_of_work
    )
