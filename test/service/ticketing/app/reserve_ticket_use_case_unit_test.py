"""
Unit tests for ReserveTicketUseCase

Flow:
1. Catalog confirms the event is published
2. Lowest available seat flips to reserved under the inventory lock
3. ticket_reserved is staged in the outbox and handed to the publisher after commit
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from test.fake_unit_of_work import FakeEventCatalogClient, InMemoryStore
from test.shared.utils import BUYER, EVENT_ID, OTHER_EVENT_ID, delivered, seed_inventory
from ticket_inventory.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from ticket_inventory.service.ticketing.app.command.reserve_ticket_use_case import (
    ReserveTicketUseCase,
)
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    EventNotFoundError,
    EventUnavailableError,
    InventoryNotFoundError,
    InventoryNotOnSaleError,
    SoldOutError,
)
from ticket_inventory.service.ticketing.domain.value_object.event_summary import EventSummary


@pytest.fixture
def use_case(uow_factory, catalog: FakeEventCatalogClient, publisher: AsyncMock) -> ReserveTicketUseCase:
    return ReserveTicketUseCase(
        uow_factory=uow_factory,
        event_catalog_client=catalog,
        event_publisher=publisher,
        reservation_ttl=timedelta(minutes=15),
    )


@pytest.mark.unit
class TestReserveTicket:
    @pytest.mark.asyncio
    async def test_reserves_lowest_available_seat(
        self, use_case: ReserveTicketUseCase, uow_factory, store: InMemoryStore, publisher: AsyncMock
    ) -> None:
        # Given
        await seed_inventory(uow_factory, total_tickets=5)
        before = datetime.now(timezone.utc)

        # When
        result = await use_case.execute(event_id=EVENT_ID, user_id=BUYER.user_id)

        # Then
        assert result.ticket.seat.label == 'R1-S1'
        assert result.ticket.status == TicketStatus.RESERVED
        assert result.ticket.user_id == BUYER.user_id
        assert result.expires_in == '15 minutes'
        assert result.reserved_until >= before + timedelta(minutes=15)

        inventory = store.inventory_for(EVENT_ID)
        assert (inventory.available_tickets, inventory.reserved_tickets) == (4, 1)
        [entry] = store.ledger_for(result.ticket.id)
        assert entry.type == TransactionType.RESERVATION
        assert entry.amount == result.ticket.price

        [message] = delivered(publisher)
        assert message.topic == KafkaTopicBuilder.TICKET_RESERVED
        assert message.key == str(result.ticket.id)
        assert message.payload == {
            'ticketId': result.ticket.id,
            'userId': BUYER.user_id,
            'eventId': EVENT_ID,
            'price': '50.00',
            'currency': 'EUR',
        }

    @pytest.mark.asyncio
    async def test_next_reservation_takes_next_seat(
        self, use_case: ReserveTicketUseCase, uow_factory
    ) -> None:
        await seed_inventory(uow_factory, total_tickets=5)

        first = await use_case.execute(event_id=EVENT_ID, user_id='user-1')
        second = await use_case.execute(event_id=EVENT_ID, user_id='user-2')

        assert (first.ticket.seat.index, second.ticket.seat.index) == (0, 1)

    @pytest.mark.asyncio
    async def test_publishes_after_commit(
        self, use_case: ReserveTicketUseCase, uow_factory, store: InMemoryStore, publisher: AsyncMock
    ) -> None:
        await seed_inventory(uow_factory, total_tickets=1)
        seen = {}

        async def capture(*, messages) -> int:
            [message] = messages
            seen['status'] = store.tickets[message.payload['ticketId']].status
            seen['staged'] = [m.id for m in store.outbox]
            return len(messages)

        publisher.deliver.side_effect = capture

        await use_case.execute(event_id=EVENT_ID, user_id=BUYER.user_id)

        assert seen['status'] == TicketStatus.RESERVED
        assert seen['staged'] == [delivered(publisher)[0].id]

    @pytest.mark.asyncio
    async def test_sold_out(self, use_case: ReserveTicketUseCase, uow_factory, publisher: AsyncMock) -> None:
        await seed_inventory(uow_factory, total_tickets=1)
        await use_case.execute(event_id=EVENT_ID, user_id='user-1')

        with pytest.raises(SoldOutError):
            await use_case.execute(event_id=EVENT_ID, user_id='user-2')
        assert len(delivered(publisher)) == 1

    @pytest.mark.asyncio
    async def test_unpublished_event(
        self, use_case: ReserveTicketUseCase, uow_factory, catalog: FakeEventCatalogClient, store: InMemoryStore
    ) -> None:
        await seed_inventory(uow_factory)
        catalog.events[EVENT_ID] = EventSummary(title='Draft Show', status='draft')

        with pytest.raises(EventUnavailableError):
            await use_case.execute(event_id=EVENT_ID, user_id=BUYER.user_id)
        assert store.inventory_for(EVENT_ID).reserved_tickets == 0

    @pytest.mark.asyncio
    async def test_event_unknown_to_catalog(self, use_case: ReserveTicketUseCase, uow_factory) -> None:
        await seed_inventory(uow_factory, event_id=OTHER_EVENT_ID)

        with pytest.raises(EventNotFoundError):
            await use_case.execute(event_id=OTHER_EVENT_ID, user_id=BUYER.user_id)

    @pytest.mark.asyncio
    async def test_no_inventory(self, use_case: ReserveTicketUseCase) -> None:
        with pytest.raises(InventoryNotFoundError):
            await use_case.execute(event_id=EVENT_ID, user_id=BUYER.user_id)

    @pytest.mark.asyncio
    async def test_sale_not_started(self, use_case: ReserveTicketUseCase, uow_factory) -> None:
        now = datetime.now(timezone.utc)
        await seed_inventory(
            uow_factory, sale_start=now + timedelta(days=1), sale_end=now + timedelta(days=2)
        )

        with pytest.raises(InventoryNotOnSaleError):
            await use_case.execute(event_id=EVENT_ID, user_id=BUYER.user_id)

    @pytest.mark.asyncio
    async def test_concurrent_reservations_never_oversell(
        self, use_case: ReserveTicketUseCase, uow_factory, store: InMemoryStore
    ) -> None:
        # Given: 3 seats and 10 buyers racing for them
        await seed_inventory(uow_factory, total_tickets=3)

        # When
        results = await asyncio.gather(
            *(use_case.execute(event_id=EVENT_ID, user_id=f'user-{i}') for i in range(10)),
            return_exceptions=True,
        )

        # Then
        reserved = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(reserved) == 3
        assert len({r.ticket.id for r in reserved}) == 3
        assert len(failures) == 7
        assert all(isinstance(f, SoldOutError) for f in failures)

        inventory = store.inventory_for(EVENT_ID)
        assert (inventory.available_tickets, inventory.reserved_tickets) == (0, 3)
        inventory.check_conservation()

    @pytest.mark.asyncio
    async def test_rejected_reservation_stages_nothing(
        self, use_case: ReserveTicketUseCase, uow_factory, store: InMemoryStore
    ) -> None:
        await seed_inventory(uow_factory, total_tickets=1)
        await use_case.execute(event_id=EVENT_ID, user_id='user-1')

        with pytest.raises(SoldOutError):
            await use_case.execute(event_id=EVENT_ID, user_id='user-2')

        assert [m.payload['userId'] for m in store.outbox] == ['user-1']
