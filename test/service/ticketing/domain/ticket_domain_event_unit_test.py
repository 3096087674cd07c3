"""
Unit tests for outbound ticket events

Payload keys are camelCase and every message is keyed by ticket id.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ticket_inventory.service.ticketing.domain.domain_event.ticket_domain_event import (
    NOTIFICATION_MESSAGES,
    TicketCancelledEvent,
    TicketNotificationEvent,
    TicketPurchasedEvent,
    TicketReservedEvent,
)
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType


NOW = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def purchased() -> Ticket:
    [ticket] = Ticket.generate(
        event_id='evt-1',
        inventory_id=1,
        price=Decimal('50.00'),
        currency='EUR',
        start_index=0,
        count=1,
    )
    ticket.id = 42
    reserved = ticket.reserve(user_id='user-1', now=NOW, ttl=timedelta(minutes=15))
    return reserved.purchase(user_id='user-1', now=NOW)


@pytest.mark.unit
class TestTicketDomainEvents:
    def test_reserved_payload(self, purchased: Ticket) -> None:
        event = TicketReservedEvent.from_ticket(ticket=purchased)

        assert event.key == '42'
        assert event.to_payload() == {
            'ticketId': 42,
            'userId': 'user-1',
            'eventId': 'evt-1',
            'price': Decimal('50.00'),
            'currency': 'EUR',
        }

    def test_purchased_payload_has_purchase_date(self, purchased: Ticket) -> None:
        payload = TicketPurchasedEvent.from_ticket(ticket=purchased).to_payload()

        assert payload['purchaseDate'] == NOW

    def test_cancelled_payload(self, purchased: Ticket) -> None:
        event = TicketCancelledEvent.from_ticket(ticket=purchased)

        assert event.key == '42'
        assert set(event.to_payload()) == {'ticketId', 'userId', 'eventId', 'price', 'currency'}

    @pytest.mark.parametrize('type', list(NotificationType))
    def test_notification_message_per_type(self, purchased: Ticket, type: NotificationType) -> None:
        payload = TicketNotificationEvent.for_ticket(type=type, ticket=purchased).to_payload()

        assert payload['type'] == type.value
        assert payload['userId'] == 'user-1'
        assert payload['message'] == NOTIFICATION_MESSAGES[type]
