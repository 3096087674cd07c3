"""
Inventory Command Repository Interface

Runs inside the Unit of Work session. Every mutation of one event's tickets
starts by locking its inventory row, so writers for the same event serialize.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory


class IInventoryCommandRepo(ABC):
    @abstractmethod
    async def get_by_event_id(self, *, event_id: str) -> Optional[Inventory]:
        pass

    @abstractmethod
    async def get_by_event_id_for_update(self, *, event_id: str) -> Optional[Inventory]:
        """SELECT ... FOR UPDATE on the inventory row (held until commit/rollback)."""
        pass

    @abstractmethod
    async def create(self, *, inventory: Inventory) -> Inventory:
        """
        Insert a new inventory and return it with its id.

        Raises:
            InventoryAlreadyExistsError: an inventory for the event already exists
        """
        pass

    @abstractmethod
    async def update(self, *, inventory: Inventory) -> Inventory:
        pass
