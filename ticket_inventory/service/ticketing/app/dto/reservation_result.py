from datetime import datetime

import attrs

from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket


@attrs.define
class ReservationResult:
    ticket: Ticket
    reserved_until: datetime
    expires_in: str
