"""
Ticket Event Publisher Implementation

Concrete adapter that implements ITicketEventPublisher on top of KafkaMqClient.

- One topic per message kind, keyed by ticket id (causal order per ticket)
- Staged outbox rows are deleted once the broker acknowledged them
- A publish that exhausted its retries leaves its row in place and raises an
  [ALERT]; the use case that already committed is not failed
"""

from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from ticket_inventory.platform.exception.exceptions import MessagePublishError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.platform.message_queue.kafka_mq_client import KafkaMqClient
from ticket_inventory.platform.metrics.inventory_metrics import metrics
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.app.interface.i_ticket_event_publisher import (
    ITicketEventPublisher,
)
from ticket_inventory.service.ticketing.app.interface.i_undelivered_message_repo import (
    IUndeliveredMessageRepo,
)


class TicketEventPublisherImpl(ITicketEventPublisher):
    def __init__(
        self,
        *,
        mq_client: KafkaMqClient,
        undelivered_message_repo: IUndeliveredMessageRepo,
    ) -> None:
        self.mq_client = mq_client
        self.undelivered_message_repo = undelivered_message_repo

    @Logger.io
    async def deliver(self, *, messages: List[UndeliveredMessage]) -> int:
        for delivered, message in enumerate(messages):
            try:
                await self.mq_client.publish(
                    topic=message.topic, key=message.key, payload=message.payload
                )
            except MessagePublishError as e:
                metrics.record_publish_failure(topic=message.topic)
                Logger.base.error(
                    f'🚨 [ALERT] {message.topic} key={message.key} not delivered, '
                    f'{len(messages) - delivered} messages left for redelivery: {e.message}'
                )
                await self._mark_failed(message=message, error=e.message)
                return delivered
            await self._acknowledge(message=message)
        return len(messages)

    @Logger.io
    async def republish(self, *, topic: str, key: str, payload: Dict[str, Any]) -> None:
        await self.mq_client.publish(topic=topic, key=key, payload=payload)

    async def _acknowledge(self, *, message: UndeliveredMessage) -> None:
        try:
            await self.undelivered_message_repo.delete(message_id=message.id)
        except SQLAlchemyError as e:
            # Left in place it is sent once more by the sweep; consumers see it twice
            Logger.base.warning(f'⚠️ [MQ] Outbox row {message.id} not removed after publish: {e}')

    async def _mark_failed(self, *, message: UndeliveredMessage, error: str) -> None:
        try:
            await self.undelivered_message_repo.mark_failed(message_id=message.id, error=error)
        except SQLAlchemyError as e:
            Logger.base.warning(f'⚠️ [MQ] Outbox row {message.id} failure not recorded: {e}')
