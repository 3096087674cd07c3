from abc import ABC, abstractmethod
from typing import Any, Dict

from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage


class ITicketOutboxRepo(ABC):
    """
    Outbound messages written in the caller's transaction.

    A staged row commits or rolls back together with the state change it
    announces; it is deleted once the broker has acknowledged it.
    """

    @abstractmethod
    async def add(self, *, topic: str, key: str, payload: Dict[str, Any]) -> UndeliveredMessage:
        pass
