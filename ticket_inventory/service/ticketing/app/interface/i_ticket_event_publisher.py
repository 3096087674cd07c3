"""
Ticket Event Publisher Interface

Messages reach the publisher already staged in the outbox by the committed
transaction. Implementations must not raise on delivery failure: the
committed state stays authoritative and the staged row waits for redelivery.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ticket_inventory.service.ticketing.app.dto.undelivered_message import UndeliveredMessage


class ITicketEventPublisher(ABC):
    @abstractmethod
    async def deliver(self, *, messages: List[UndeliveredMessage]) -> int:
        """
        Publish staged messages in order and acknowledge each one.

        Stops at the first failure so later messages for the same ticket do
        not overtake it. Returns how many were delivered.
        """
        pass

    @abstractmethod
    async def republish(self, *, topic: str, key: str, payload: Dict[str, Any]) -> None:
        """
        Publish a previously parked message.

        Raises:
            MessagePublishError: the broker still does not accept it
        """
        pass
