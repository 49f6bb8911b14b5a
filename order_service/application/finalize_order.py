import logging

from fulfillment_common.event_log import StreamRecord
from fulfillment_common.events import InventoryUpdated, MalformedEventError
from order_service.core.models import OrderStatusEnum
from order_service.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class FinalizeOrderUseCase:
    def __init__(self, unit_of_work: UnitOfWork):
        self._unit_of_work = unit_of_work

    async def __call__(self, record: StreamRecord) -> bool:
        """
        Apply an InventoryUpdated record to its order. Only a PENDING order is
        updated; redelivered or late events leave a terminal status untouched.
        Returns whether the order changed.
        """
        try:
            event = InventoryUpdated.from_fields(record.fields)
        except MalformedEventError as e:
            logger.error(f"Skipping record {record.record_id}: {e}")
            return False

        async with self._unit_of_work() as uow:
            updated = await uow.orders.finalize(
                event.order_id, OrderStatusEnum(event.status)
            )
            await uow.commit()

        if updated:
            logger.info(f"Order {event.order_id} finalized as {event.status}")
        else:
            logger.warning(
                f"Order {event.order_id} is missing or no longer PENDING, "
                f"ignoring {event.status} from record {record.record_id}"
            )
        return updated
