from abc import ABC, abstractmethod

from ticket_inventory.service.ticketing.domain.value_object.event_summary import EventSummary


class IEventCatalogClient(ABC):
    @abstractmethod
    async def get_event(self, *, event_id: str) -> EventSummary:
        """
        Fetch one event from the catalog service.

        Raises:
            EventNotFoundError: the catalog has no such event
            CatalogUnavailableError: timeout, transport failure or unexpected response
        """
        pass
