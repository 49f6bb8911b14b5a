from dependency_injector import containers, providers

from inventory_service.application.reserve_inventory import ReserveInventoryUseCase
from inventory_service.infrastructure.container import InfrastructureContainer


class ApplicationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    infrastructure_container = providers.Container[InfrastructureContainer](
        InfrastructureContainer,
        config=config.infrastructure,
    )

    reserve_inventory_use_case = providers.Singleton[ReserveInventoryUseCase](
        ReserveInventoryUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        event_log=infrastructure_container.event_log_container.event_log,
    )
