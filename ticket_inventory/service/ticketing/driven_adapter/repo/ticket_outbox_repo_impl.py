from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage
from ticket_inventory.service.ticketing.app.interface.i_ticket_outbox_repo import (
    ITicketOutboxRepo,
)
from ticket_inventory.service.ticketing.driven_adapter.model.undelivered_message_model import (
    UndeliveredMessageModel,
)


class TicketOutboxRepoImpl(ITicketOutboxRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def add(self, *, topic: str, key: str, payload: Dict[str, Any]) -> UndeliveredMessage:
        model = UndeliveredMessageModel(topic=topic, message_key=key, payload=payload, attempts=0)
        self.session.add(model)
        # The id is needed to acknowledge the row after publishing
        await self.session.flush()
        return UndeliveredMessage(id=model.id, topic=topic, key=key, payload=payload)
