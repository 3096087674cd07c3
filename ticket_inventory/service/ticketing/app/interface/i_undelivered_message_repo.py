from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage


class IUndeliveredMessageRepo(ABC):
    """Outbox rows outside any request transaction: listing, acknowledging, failures."""

    @abstractmethod
    async def list_oldest(self, *, limit: int, created_before: datetime) -> List[UndeliveredMessage]:
        pass

    @abstractmethod
    async def delete(self, *, message_id: int) -> None:
        pass

    @abstractmethod
    async def mark_failed(self, *, message_id: int, error: str) -> None:
        pass
