from datetime import datetime, timedelta, timezone
from typing import Optional

from ticket_inventory.platform.config.core_setting import settings
from ticket_inventory.platform.exception.exceptions import MessagePublishError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.interface.i_ticket_event_publisher import (
    ITicketEventPublisher,
)
from ticket_inventory.service.ticketing.app.interface.i_undelivered_message_repo import (
    IUndeliveredMessageRepo,
)


class RedeliverUndeliveredMessagesUseCase:
    """
    Re-publish outbox rows that were not acknowledged, oldest first.

    Rows younger than the grace period are skipped: their own request may
    still be publishing them.

    Stops at the first failure so later messages for the same ticket are not
    delivered ahead of earlier ones.
    """

    def __init__(
        self,
        *,
        undelivered_message_repo: IUndeliveredMessageRepo,
        event_publisher: ITicketEventPublisher,
        batch_size: Optional[int] = None,
        grace: Optional[timedelta] = None,
    ) -> None:
        self.undelivered_message_repo = undelivered_message_repo
        self.event_publisher = event_publisher
        self.batch_size = batch_size or settings.MQ_REDELIVERY_BATCH_SIZE
        self.grace = (
            timedelta(seconds=settings.MQ_OUTBOX_GRACE_SECONDS) if grace is None else grace
        )

    @Logger.io
    async def execute(self) -> int:
        messages = await self.undelivered_message_repo.list_oldest(
            limit=self.batch_size, created_before=datetime.now(timezone.utc) - self.grace
        )
        delivered = 0

        for message in messages:
            try:
                await self.event_publisher.republish(
                    topic=message.topic, key=message.key, payload=message.payload
                )
            except MessagePublishError as e:
                await self.undelivered_message_repo.mark_failed(message_id=message.id, error=str(e))
                Logger.base.warning(
                    f'⚠️ [MQ] Redelivery of message {message.id} to {message.topic} failed '
                    f'(attempt {message.attempts + 1}), {len(messages) - delivered} still parked'
                )
                break
            await self.undelivered_message_repo.delete(message_id=message.id)
            delivered += 1

        if delivered:
            Logger.base.info(f'📬 [MQ] Redelivered {delivered} parked messages')
        return delivered
