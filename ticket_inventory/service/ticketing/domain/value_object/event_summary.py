from typing import Any, Dict, Optional

import attrs


PUBLISHED_STATUS = 'published'
PLACEHOLDER_TITLE = 'Event details not available'


@attrs.frozen
class EventSummary:
    """The slice of catalog event metadata this service needs."""

    title: str
    status: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    venue: Optional[Any] = None

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED_STATUS

    @classmethod
    def placeholder(cls) -> 'EventSummary':
        return cls(title=PLACEHOLDER_TITLE)

    @classmethod
    def from_catalog(cls, data: Dict[str, Any]) -> 'EventSummary':
        """Accept both `{event: {...}}` and the bare event document."""
        event = data['event'] if isinstance(data.get('event'), dict) else data
        return cls(
            title=str(event.get('title') or ''),
            status=event.get('status'),
            start_date=event.get('startDate') or event.get('start_date'),
            end_date=event.get('endDate') or event.get('end_date'),
            venue=event.get('venue'),
        )

    def to_listing(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'venue': self.venue,
        }
