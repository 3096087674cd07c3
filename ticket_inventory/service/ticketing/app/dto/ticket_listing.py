from typing import List

import attrs

from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.value_object.event_summary import EventSummary


@attrs.define
class UserTicketView:
    ticket: Ticket
    event: EventSummary


@attrs.define
class EventTicketPage:
    tickets: List[Ticket]
    total_tickets: int
    total_pages: int
    current_page: int
