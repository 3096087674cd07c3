"""
Unit tests for the Inventory entity

Counters must always add up to total; every move is rejected rather than
clamped when it would break that.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ticket_inventory.platform.exception.exceptions import InvariantViolationError
from ticket_inventory.service.ticketing.domain.entity.inventory_entity import Inventory
from ticket_inventory.service.ticketing.domain.enum.inventory_status import InventoryStatus
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    InventoryNotOnSaleError,
    InventoryResizeError,
    SoldOutError,
)


NOW = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)


def _inventory(total_tickets: int = 10) -> Inventory:
    return Inventory.create(
        event_id='evt-1',
        total_tickets=total_tickets,
        base_price=Decimal('50.00'),
        currency='EUR',
        sale_start=NOW - timedelta(days=1),
        sale_end=NOW + timedelta(days=1),
    )


@pytest.mark.unit
class TestInventoryCreate:
    def test_create_puts_everything_on_sale(self) -> None:
        inventory = _inventory(total_tickets=10)

        assert inventory.available_tickets == 10
        assert inventory.reserved_tickets == inventory.sold_tickets == 0
        assert inventory.status == InventoryStatus.ACTIVE
        inventory.check_conservation()

    def test_create_rejects_negative_total(self) -> None:
        with pytest.raises(InvariantViolationError):
            _inventory(total_tickets=-1)

    def test_create_rejects_inverted_sale_window(self) -> None:
        with pytest.raises(InvariantViolationError):
            Inventory.create(
                event_id='evt-1',
                total_tickets=1,
                base_price=Decimal('50.00'),
                currency='EUR',
                sale_start=NOW,
                sale_end=NOW - timedelta(seconds=1),
            )

    def test_empty_inventory_is_sold_out(self) -> None:
        inventory = _inventory(total_tickets=0)

        assert inventory.effective_status == InventoryStatus.SOLD_OUT
        assert inventory.status == InventoryStatus.ACTIVE


@pytest.mark.unit
class TestInventorySaleGuard:
    def test_on_sale(self) -> None:
        _inventory().ensure_on_sale(now=NOW)

    @pytest.mark.parametrize('offset', [timedelta(days=-2), timedelta(days=2)])
    def test_outside_sale_window(self, offset: timedelta) -> None:
        with pytest.raises(InventoryNotOnSaleError):
            _inventory().ensure_on_sale(now=NOW + offset)

    def test_closed_is_not_on_sale(self) -> None:
        with pytest.raises(InventoryNotOnSaleError):
            _inventory().close().ensure_on_sale(now=NOW)

    def test_sold_out(self) -> None:
        with pytest.raises(SoldOutError):
            _inventory(total_tickets=0).ensure_on_sale(now=NOW)


@pytest.mark.unit
class TestInventoryCounterMoves:
    def test_reserve_moves_available_to_reserved(self) -> None:
        inventory = _inventory().record_transition(
            from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.RESERVED
        )

        assert (inventory.available_tickets, inventory.reserved_tickets) == (9, 1)

    def test_redeem_keeps_counters(self) -> None:
        inventory = _inventory()

        same = inventory.record_transition(
            from_status=TicketStatus.PURCHASED, to_status=TicketStatus.USED
        )

        assert same is inventory

    def test_withdraw_shrinks_total(self) -> None:
        inventory = _inventory().record_transition(
            from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.WITHDRAWN
        )

        assert (inventory.total_tickets, inventory.available_tickets) == (9, 9)

    def test_move_from_empty_counter_is_rejected(self) -> None:
        with pytest.raises(InvariantViolationError):
            _inventory().record_transition(
                from_status=TicketStatus.RESERVED, to_status=TicketStatus.PURCHASED
            )

    def test_close_folds_open_units_into_cancelled(self) -> None:
        inventory = _inventory()
        inventory = inventory.record_transition(
            from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.RESERVED
        )
        inventory = inventory.record_transition(
            from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.RESERVED
        )
        inventory = inventory.record_transition(
            from_status=TicketStatus.RESERVED, to_status=TicketStatus.PURCHASED
        )

        closed = inventory.close()

        assert closed.status == InventoryStatus.CLOSED
        assert closed.available_tickets == closed.reserved_tickets == 0
        assert (closed.sold_tickets, closed.cancelled_tickets) == (1, 9)
        closed.check_conservation()


@pytest.mark.unit
class TestInventoryResize:
    def test_grow(self) -> None:
        inventory = _inventory(total_tickets=10).grow(count=5)

        assert (inventory.total_tickets, inventory.available_tickets) == (15, 15)

    def test_cannot_shrink_below_committed(self) -> None:
        inventory = _inventory(total_tickets=10)
        for _ in range(4):
            inventory = inventory.record_transition(
                from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.RESERVED
            )

        inventory.ensure_can_shrink_to(4)
        with pytest.raises(InventoryResizeError):
            inventory.ensure_can_shrink_to(3)

    def test_reprice_keeps_currency_when_omitted(self) -> None:
        inventory = _inventory().reprice(base_price=Decimal('75.00'), currency=None)

        assert (inventory.base_price, inventory.currency) == (Decimal('75.00'), 'EUR')

    def test_reprice_noop(self) -> None:
        inventory = _inventory()

        assert inventory.reprice(base_price=None, currency=None) is inventory
