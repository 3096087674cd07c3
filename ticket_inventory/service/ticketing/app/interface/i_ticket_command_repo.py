"""
Ticket Command Repository Interface

Runs inside the Unit of Work session. Lock order is always inventory row
first, then ticket rows.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus


class ITicketCommandRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, ticket_id: int) -> Optional[Ticket]:
        pass

    @abstractmethod
    async def get_by_id_for_update(self, *, ticket_id: int) -> Optional[Ticket]:
        pass

    @abstractmethod
    async def create_many(self, *, tickets: List[Ticket]) -> int:
        """Bulk insert; returns the number of rows written."""
        pass

    @abstractmethod
    async def update(self, *, ticket: Ticket) -> Ticket:
        pass

    @abstractmethod
    async def pick_available_for_update(self, *, inventory_id: int) -> Optional[Ticket]:
        """
        Lock the lowest-numbered available ticket, skipping rows locked by
        concurrent reservations (FOR UPDATE SKIP LOCKED).
        """
        pass

    @abstractmethod
    async def list_by_status_for_update(
        self,
        *,
        inventory_id: int,
        statuses: Sequence[TicketStatus],
        limit: Optional[int] = None,
        highest_seat_first: bool = False,
    ) -> List[Ticket]:
        pass

    @abstractmethod
    async def update_status_many(
        self, *, ticket_ids: List[int], status: TicketStatus, updated_at: datetime
    ) -> int:
        pass

    @abstractmethod
    async def reprice_available(
        self, *, inventory_id: int, price: Decimal, currency: str, updated_at: datetime
    ) -> int:
        """Push a new price onto `available` tickets only; returns rows changed."""
        pass

    @abstractmethod
    async def max_seat_index(self, *, inventory_id: int) -> int:
        """Highest seat_index of the inventory, -1 when it has no tickets."""
        pass

    @abstractmethod
    async def find_expired_reservations(self, *, now: datetime, limit: int) -> List[Ticket]:
        """Reserved tickets whose reserved_until has passed (not locked)."""
        pass
