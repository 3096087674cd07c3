"""
End-to-end ticket lifecycle

One inventory of two 10 EUR seats is walked through reserve, purchase, gate
validation, upstream cancellation and a rejected shrink, the way the
production use cases chain together. Only storage, the catalog and the broker
are in-memory.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from test.fake_unit_of_work import FakeEventCatalogClient, InMemoryStore
from test.shared.utils import EVENT_ID, ORGANIZER, delivered, seed_inventory
from ticket_inventory.platform.exception.exceptions import ConflictError, InvariantViolationError
from ticket_inventory.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from ticket_inventory.service.ticketing.app.command.cancel_ticket_use_case import (
    CancelTicketUseCase,
)
from ticket_inventory.service.ticketing.app.command.close_inventory_use_case import (
    CloseInventoryUseCase,
)
from ticket_inventory.service.ticketing.app.command.purchase_ticket_use_case import (
    PurchaseTicketUseCase,
)
from ticket_inventory.service.ticketing.app.command.reserve_ticket_use_case import (
    ReserveTicketUseCase,
)
from ticket_inventory.service.ticketing.app.command.resize_inventory_use_case import (
    ResizeInventoryUseCase,
)
from ticket_inventory.service.ticketing.app.command.validate_ticket_use_case import (
    ValidateTicketUseCase,
)
from ticket_inventory.service.ticketing.domain.entity.ticket_entity import Ticket
from ticket_inventory.service.ticketing.domain.enum.inventory_status import InventoryStatus
from ticket_inventory.service.ticketing.domain.enum.notification_type import NotificationType
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.enum.transaction_enum import TransactionType
from ticket_inventory.service.ticketing.domain.enum.user_role import UserRole
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    NotCancellableError,
    SoldOutError,
    WrongStatusError,
)
from ticket_inventory.service.ticketing.domain.value_object.principal import Principal


USER_A = Principal(user_id='user-a', role=UserRole.USER)
USER_B = Principal(user_id='user-b', role=UserRole.USER)
USER_C = Principal(user_id='user-c', role=UserRole.USER)


class TicketingService:
    """The use cases wired on one store, as the container would wire them."""

    def __init__(self, uow_factory, catalog: FakeEventCatalogClient, publisher: AsyncMock) -> None:
        self.publisher = publisher
        self.reserve_use_case = ReserveTicketUseCase(
            uow_factory=uow_factory, event_catalog_client=catalog, event_publisher=publisher
        )
        self.purchase_use_case = PurchaseTicketUseCase(
            uow_factory=uow_factory, event_publisher=publisher
        )
        self.cancel_use_case = CancelTicketUseCase(
            uow_factory=uow_factory, event_publisher=publisher
        )
        self.validate_use_case = ValidateTicketUseCase(uow_factory=uow_factory)
        self.close_use_case = CloseInventoryUseCase(
            uow_factory=uow_factory, event_publisher=publisher
        )
        self.resize_use_case = ResizeInventoryUseCase(uow_factory=uow_factory)

    async def reserve(self, principal: Principal) -> Ticket:
        result = await self.reserve_use_case.execute(event_id=EVENT_ID, user_id=principal.user_id)
        return result.ticket

    async def purchase(self, ticket: Ticket, principal: Principal) -> Ticket:
        return await self.purchase_use_case.execute(
            ticket_id=ticket.id, user_id=principal.user_id, payment_method='card'
        )

    async def validate(self, ticket: Ticket, proof: str) -> Ticket:
        return await self.validate_use_case.execute(
            ticket_id=ticket.id, qr_data=proof, principal=ORGANIZER
        )


@pytest.fixture
def service(uow_factory, catalog, publisher) -> TicketingService:
    return TicketingService(uow_factory, catalog, publisher)


def counters(store: InMemoryStore) -> dict[str, int]:
    inventory = store.inventory_for(EVENT_ID)
    inventory.check_conservation()
    return {
        'total': inventory.total_tickets,
        'available': inventory.available_tickets,
        'reserved': inventory.reserved_tickets,
        'sold': inventory.sold_tickets,
        'cancelled': inventory.cancelled_tickets,
    }


@pytest.mark.unit
class TestTicketLifecycle:
    @pytest.mark.asyncio
    async def test_two_seat_event_from_sale_to_cancellation(
        self, service: TicketingService, uow_factory, store: InMemoryStore
    ):
        """
        Given: an inventory of 2 tickets at 10 EUR
        When: A and B reserve, C tries, A buys and gets in, then the event is cancelled
        Then: every step moves exactly one ticket between counters and nothing leaks
        """
        await seed_inventory(uow_factory, total_tickets=2, base_price=Decimal('10.00'))

        # Scenario 1: two reservations fill the event, a third is refused
        ticket_a = await service.reserve(USER_A)
        assert counters(store) == {
            'total': 2, 'available': 1, 'reserved': 1, 'sold': 0, 'cancelled': 0
        }
        ticket_b = await service.reserve(USER_B)
        assert counters(store) == {
            'total': 2, 'available': 0, 'reserved': 2, 'sold': 0, 'cancelled': 0
        }
        assert store.inventory_for(EVENT_ID).effective_status == InventoryStatus.SOLD_OUT

        with pytest.raises(SoldOutError):
            await service.reserve(USER_C)
        assert counters(store)['reserved'] == 2

        # Scenario 2: A pays for their hold
        purchased = await service.purchase(ticket_a, USER_A)
        assert purchased.status == TicketStatus.PURCHASED
        assert purchased.qr_proof
        assert purchased.validation_code
        assert counters(store) == {
            'total': 2, 'available': 0, 'reserved': 1, 'sold': 1, 'cancelled': 0
        }

        # Scenario 3: the proof is good exactly once
        used = await service.validate(purchased, purchased.qr_proof)
        assert used.status == TicketStatus.USED
        with pytest.raises(WrongStatusError):
            await service.validate(purchased, purchased.qr_proof)
        assert counters(store)['sold'] == 1

        # A used ticket can no longer be cancelled by its holder
        with pytest.raises(NotCancellableError):
            await service.cancel_use_case.execute(ticket_id=ticket_a.id, principal=USER_A)

        # Scenario 4: the event is cancelled upstream
        service.publisher.reset_mock()
        await service.close_use_case.execute(event_id=EVENT_ID)

        assert counters(store) == {
            'total': 2, 'available': 0, 'reserved': 0, 'sold': 0, 'cancelled': 2
        }
        assert store.inventory_for(EVENT_ID).status == InventoryStatus.CLOSED
        statuses = {t.id: t.status for t in store.tickets_for(EVENT_ID)}
        assert statuses == {ticket_a.id: TicketStatus.CANCELLED, ticket_b.id: TicketStatus.CANCELLED}

        a_ledger = [t.type for t in store.ledger_for(ticket_a.id)]
        assert a_ledger[-1] == TransactionType.CANCELLATION
        b_ledger = [t.type for t in store.ledger_for(ticket_b.id)]
        assert b_ledger[-1] == TransactionType.CANCELLATION

        notified = delivered(service.publisher, topic=KafkaTopicBuilder.NOTIFICATION_EVENT)
        assert [(n.payload['ticketId'], n.payload['type']) for n in notified] == [
            (ticket_a.id, str(NotificationType.EVENT_CANCELLED))
        ]

    @pytest.mark.asyncio
    async def test_shrinking_below_committed_is_rejected(
        self, service: TicketingService, uow_factory, store: InMemoryStore
    ):
        """
        Given: 2 tickets, one sold and one reserved
        When: the upstream event asks for 1 ticket
        Then: the resize fails with an invariant violation and counters do not move
        """
        await seed_inventory(uow_factory, total_tickets=2, base_price=Decimal('10.00'))
        ticket_a = await service.reserve(USER_A)
        await service.purchase(ticket_a, USER_A)
        await service.reserve(USER_B)
        before = counters(store)

        # Scenario 5
        with pytest.raises(InvariantViolationError):
            await service.resize_use_case.execute(event_id=EVENT_ID, new_total=1)

        assert counters(store) == before
        assert len(store.tickets_for(EVENT_ID)) == 2

    @pytest.mark.asyncio
    async def test_cancelled_seat_is_never_resold(
        self, service: TicketingService, uow_factory, store: InMemoryStore
    ):
        """
        Given: a single-seat event whose only reservation was cancelled
        When: another user tries to reserve
        Then: the event stays sold out, cancelled is terminal
        """
        await seed_inventory(uow_factory, total_tickets=1)
        ticket = await service.reserve(USER_A)
        await service.cancel_use_case.execute(ticket_id=ticket.id, principal=USER_A)

        with pytest.raises(ConflictError):
            await service.reserve(USER_B)
        assert counters(store) == {
            'total': 1, 'available': 0, 'reserved': 0, 'sold': 0, 'cancelled': 1
        }
