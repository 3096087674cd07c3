"""
Unit tests for PurchaseTicketUseCase

reserved -> purchased for the holder, before the reservation deadline.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from test.fake_unit_of_work import FakeEventCatalogClient, InMemoryStore
from test.shared.utils import ANOTHER_BUYER, BUYER, EVENT_ID, delivered, seed_inventory
from ticket_inventory.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from ticket_inventory.service.ticketing.app.command.purchase_ticket_use_case import (
    PurchaseTicketUseCase,
)
from ticket_inventory.service.ticketing.app.command.reserve_ticket_use_case import (
    ReserveTicketUseCase,
)
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    NotYourReservationError,
    ReservationExpiredError,
    TicketNotFoundError,
)


@pytest.fixture
def use_case(uow_factory, publisher: AsyncMock) -> PurchaseTicketUseCase:
    return PurchaseTicketUseCase(uow_factory=uow_factory, event_publisher=publisher)


@pytest_asyncio.fixture
async def reserved(uow_factory, catalog: FakeEventCatalogClient, publisher: AsyncMock) -> Ticket:
    await seed_inventory(uow_factory, total_tickets=3)
    result = await ReserveTicketUseCase(
        uow_factory=uow_factory, event_catalog_client=catalog, event_publisher=publisher
    ).execute(event_id=EVENT_ID, user_id=BUYER.user_id)
    publisher.reset_mock()
    return result.ticket


@pytest.mark.unit
class TestPurchaseTicket:
    @pytest.mark.asyncio
    async def test_holder_purchases(
        self,
        use_case: PurchaseTicketUseCase,
        reserved: Ticket,
        store: InMemoryStore,
        publisher: AsyncMock,
    ) -> None:
        # When
        purchased = await use_case.execute(
            ticket_id=reserved.id,
            user_id=BUYER.user_id,
            payment_method='card',
            payment_reference='pay-123',
        )

        # Then
        assert purchased.status == TicketStatus.PURCHASED
        assert purchased.qr_proof
        assert purchased.purchase_date is not None

        inventory = store.inventory_for(EVENT_ID)
        assert (inventory.reserved_tickets, inventory.sold_tickets) == (0, 1)

        entry = store.ledger_for(reserved.id)[-1]
        assert entry.type == TransactionType.PURCHASE
        assert (entry.payment_method, entry.payment_reference) == ('card', 'pay-123')

        purchased_message, notification = delivered(publisher)
        assert purchased_message.topic == KafkaTopicBuilder.TICKET_PURCHASED
        assert purchased_message.payload['purchaseDate'] == purchased.purchase_date.isoformat()
        assert notification.topic == KafkaTopicBuilder.NOTIFICATION_EVENT
        assert notification.payload['type'] == NotificationType.TICKET_PURCHASED
        assert notification.payload['userId'] == BUYER.user_id

    @pytest.mark.asyncio
    async def test_someone_else_cannot_purchase(
        self,
        use_case: PurchaseTicketUseCase,
        reserved: Ticket,
        store: InMemoryStore,
        publisher: AsyncMock,
    ) -> None:
        with pytest.raises(NotYourReservationError):
            await use_case.execute(ticket_id=reserved.id, user_id=ANOTHER_BUYER.user_id)

        assert store.tickets[reserved.id].status == TicketStatus.RESERVED
        publisher.deliver.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_reservation(
        self, use_case: PurchaseTicketUseCase, reserved: Ticket, store: InMemoryStore
    ) -> None:
        store.backdate_reservation(
            reserved.id, reserved_until=datetime.now(timezone.utc) - timedelta(seconds=1)
        )

        with pytest.raises(ReservationExpiredError):
            await use_case.execute(ticket_id=reserved.id, user_id=BUYER.user_id)

        # Left for the expiry sweep, counters untouched
        assert store.tickets[reserved.id].status == TicketStatus.RESERVED
        assert store.inventory_for(EVENT_ID).reserved_tickets == 1

    @pytest.mark.asyncio
    async def test_purchase_twice(self, use_case: PurchaseTicketUseCase, reserved: Ticket) -> None:
        await use_case.execute(ticket_id=reserved.id, user_id=BUYER.user_id)

        with pytest.raises(NotYourReservationError):
            await use_case.execute(ticket_id=reserved.id, user_id=BUYER.user_id)

    @pytest.mark.asyncio
    async def test_unknown_ticket(self, use_case: PurchaseTicketUseCase) -> None:
        with pytest.raises(TicketNotFoundError):
            await use_case.execute(ticket_id=999, user_id=BUYER.user_id)
