import logging

from sqlalchemy.exc import IntegrityError

from fulfillment_common.event_log import EventLog, StreamRecord
from fulfillment_common.events import (
    INVENTORY_STREAM,
    InventoryStatus,
    InventoryUpdated,
    OrderPlaced,
    order_id_of,
)
from inventory_service.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ReserveInventoryUseCase:
    """
    Inventory Reconciler step for one OrderPlaced record.

    Every line item is reserved with a guarded decrement inside a single
    transaction; the first short item rolls the whole order back. The outcome
    is stored per order id in the same transaction, so a redelivered record
    only re-publishes the stored outcome. Any failure while reserving is
    stored and reported as FAILED. Failing to store that outcome, or to
    publish it, propagates and leaves the record to be retried.
    """

    def __init__(self, unit_of_work: UnitOfWork, event_log: EventLog):
        self._unit_of_work = unit_of_work
        self._event_log = event_log

    async def __call__(self, record: StreamRecord) -> InventoryStatus | None:
        order_id = order_id_of(record.fields)
        if order_id is None:
            logger.error(
                f"Skipping record {record.record_id} without a usable order_id: "
                f"{record.fields}"
            )
            return None

        try:
            status = await self._reserve(order_id, record)
        except Exception as e:
            logger.error(
                f"Reservation for order {order_id} failed: {e}", exc_info=True
            )
            status = await self._record_failure(order_id)

        record_id = await self._event_log.append(
            INVENTORY_STREAM,
            InventoryUpdated(order_id=order_id, status=status).to_fields(),
        )
        logger.info(f"Order {order_id} inventory {status}, published as {record_id}")
        return status

    async def _reserve(self, order_id: int, record: StreamRecord) -> InventoryStatus:
        event = OrderPlaced.from_fields(record.fields)

        try:
            async with self._unit_of_work() as uow:
                processed = await uow.processed_orders.get(order_id)
                if processed is not None:
                    logger.info(
                        f"Order {order_id} already reconciled as {processed.status}, "
                        f"record {record.record_id} is a redelivery"
                    )
                    return processed.status

                status = InventoryStatus.COMPLETED
                for product in event.products:
                    if not await uow.products.reserve(
                        product.product_id, product.quantity
                    ):
                        logger.warning(
                            f"Order {order_id}: product {product.product_id} missing "
                            f"or short of {product.quantity} units"
                        )
                        status = InventoryStatus.FAILED
                        break

                if status is InventoryStatus.FAILED:
                    await uow.rollback()
                await uow.processed_orders.create(order_id, status)
                await uow.commit()
                return status
        except IntegrityError:
            # Another reconciler stored the outcome first.
            async with self._unit_of_work() as uow:
                processed = await uow.processed_orders.get(order_id)
            if processed is None:
                raise
            return processed.status

    async def _record_failure(self, order_id: int) -> InventoryStatus:
        """
        Store FAILED for an order whose reservation broke off. Raises when the
        store is still unreachable, so nothing is published before the
        outcome is recorded.
        """
        try:
            async with self._unit_of_work() as uow:
                await uow.processed_orders.create(order_id, InventoryStatus.FAILED)
                await uow.commit()
        except IntegrityError:
            async with self._unit_of_work() as uow:
                processed = await uow.processed_orders.get(order_id)
            if processed is None:
                raise
            return processed.status
        return InventoryStatus.FAILED
