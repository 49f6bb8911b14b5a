import logging

from fulfillment_common.event_log import EventLog
from order_service.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ProcessOutboxEventsUseCase:
    def __init__(
        self,
        unit_of_work: UnitOfWork,
        event_log: EventLog,
        batch_size: int = 100,
    ):
        self._unit_of_work = unit_of_work
        self._event_log = event_log
        self._batch_size = batch_size

    async def __call__(self) -> int:
        """
        Publish pending outbox events in insertion order and mark each as sent
        once the log confirmed the append. A failed append propagates and ends
        the batch, so later events never overtake it.
        Returns the number of events sent.
        """
        async with self._unit_of_work() as uow:
            events = await uow.outbox.get_pending_events(limit=self._batch_size)

        for event in events:
            record_id = await self._event_log.append(event.stream, event.payload)

            async with self._unit_of_work() as uow:
                await uow.outbox.mark_as_sent(event.id)
                await uow.commit()

            logger.info(
                f"Published outbox event {event.id} ({event.event_type}) as {record_id}"
            )

        return len(events)
