"""
Ticket Domain Events (outbound)

Published after the local transaction committed. Payload keys are camelCase,
matching what the notification and payment consumers read. Every event is
keyed by ticket id so the messages for one ticket stay in causal order.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import attrs

from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType


NOTIFICATION_MESSAGES: Dict[NotificationType, str] = {
    NotificationType.TICKET_PURCHASED: (
        'Your ticket purchase was successful. Your ticket is now available.'
    ),
    NotificationType.TICKET_CANCELLED: 'Your ticket has been cancelled successfully.',
    NotificationType.EVENT_CANCELLED: (
        'The event you purchased tickets for has been cancelled. A refund will be processed.'
    ),
}


@attrs.define
class TicketReservedEvent:
    ticket_id: int
    user_id: str
    event_id: str
    price: Decimal
    currency: str

    @classmethod
    def from_ticket(cls, *, ticket: Ticket) -> 'TicketReservedEvent':
        return cls(
            ticket_id=ticket.id,
            user_id=ticket.user_id,
            event_id=ticket.event_id,
            price=ticket.price,
            currency=ticket.currency,
        )

    @property
    def key(self) -> str:
        return str(self.ticket_id)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'ticketId': self.ticket_id,
            'userId': self.user_id,
            'eventId': self.event_id,
            'price': self.price,
            'currency': self.currency,
        }


@attrs.define
class TicketPurchasedEvent:
    ticket_id: int
    user_id: str
    event_id: str
    price: Decimal
    currency: str
    purchase_date: datetime

    @classmethod
    def from_ticket(cls, *, ticket: Ticket) -> 'TicketPurchasedEvent':
        return cls(
            ticket_id=ticket.id,
            user_id=ticket.user_id,
            event_id=ticket.event_id,
            price=ticket.price,
            currency=ticket.currency,
            purchase_date=ticket.purchase_date,
        )

    @property
    def key(self) -> str:
        return str(self.ticket_id)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'ticketId': self.ticket_id,
            'userId': self.user_id,
            'eventId': self.event_id,
            'price': self.price,
            'currency': self.currency,
            'purchaseDate': self.purchase_date,
        }


@attrs.define
class TicketCancelledEvent:
    ticket_id: int
    user_id: Optional[str]
    event_id: str
    price: Decimal
    currency: str

    @classmethod
    def from_ticket(cls, *, ticket: Ticket) -> 'TicketCancelledEvent':
        return cls(
            ticket_id=ticket.id,
            user_id=ticket.user_id,
            event_id=ticket.event_id,
            price=ticket.price,
            currency=ticket.currency,
        )

    @property
    def key(self) -> str:
        return str(self.ticket_id)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'ticketId': self.ticket_id,
            'userId': self.user_id,
            'eventId': self.event_id,
            'price': self.price,
            'currency': self.currency,
        }


@attrs.define
class TicketNotificationEvent:
    """User-facing notification request; delivery (email/SMS) belongs to another service."""

    type: NotificationType
    user_id: Optional[str]
    event_id: str
    ticket_id: int
    message: str

    @classmethod
    def for_ticket(cls, *, type: NotificationType, ticket: Ticket) -> 'TicketNotificationEvent':
        return cls(
            type=type,
            user_id=ticket.user_id,
            event_id=ticket.event_id,
            ticket_id=ticket.id,
            message=NOTIFICATION_MESSAGES[type],
        )

    @property
    def key(self) -> str:
        return str(self.ticket_id)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'type': str(self.type),
            'userId': self.user_id,
            'eventId': self.event_id,
            'ticketId': self.ticket_id,
            'message': self.message,
        }
