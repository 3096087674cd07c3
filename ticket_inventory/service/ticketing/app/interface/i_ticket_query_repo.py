from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus


class ITicketQueryRepo(ABC):
    """Read-only projections; each call uses its own short-lived session."""

    @abstractmethod
    async def list_by_user(
        self, *, user_id: str, statuses: Sequence[TicketStatus]
    ) -> List[Ticket]:
        """Newest purchase first; tickets never purchased sort last, newest first."""
        pass

    @abstractmethod
    async def list_by_event(
        self,
        *,
        event_id: str,
        status: Optional[TicketStatus],
        offset: int,
        limit: int,
    ) -> List[Ticket]:
        """Newest first by created_at."""
        pass

    @abstractmethod
    async def count_by_event(self, *, event_id: str, status: Optional[TicketStatus]) -> int:
        pass

    @abstractmethod
    async def get_inventory_by_event_id(self, *, event_id: str) -> Optional[Inventory]:
        pass
