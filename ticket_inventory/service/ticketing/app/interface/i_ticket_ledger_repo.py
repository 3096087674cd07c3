from abc import ABC, abstractmethod
from typing import List

from ticket_inventory.service.ticketing.domain.entity.transaction_entity import Transaction


class ITicketLedgerRepo(ABC):
    """Append-only audit log. Never consulted by a guard."""

    @abstractmethod
    async def record(self, *, transaction: Transaction) -> Transaction:
        pass

    @abstractmethod
    async def record_many(self, *, transactions: List[Transaction]) -> int:
        pass

    @abstractmethod
    async def list_by_ticket_id(self, *, ticket_id: int) -> List[Transaction]:
        """History of one ticket, oldest first (reconciliation and audit)."""
        pass
