from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import attrs

from ticket_inventory.platform.exception.exceptions import InvariantViolationError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.domain.enum.inventory_status import InventoryStatus
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.ticket_state_machine import COUNTER_BY_STATUS
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    InventoryNotOnSaleError,
    InventoryResizeError,
    SoldOutError,
)


def _validate_non_negative(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise InvariantViolationError(f'Inventory {attribute.name} cannot be negative')


@attrs.define
class Inventory:
    """
    Per-event ticket pool counters.

    total == available + reserved + sold + cancelled after every operation.
    Tickets moved to `withdrawn` by a resize-down are no longer part of `total`.
    """

    event_id: str
    total_tickets: int = attrs.field(validator=_validate_non_negative)
    available_tickets: int = attrs.field(validator=_validate_non_negative)
    base_price: Decimal
    currency: str
    sale_start: datetime
    sale_end: datetime
    reserved_tickets: int = attrs.field(default=0, validator=_validate_non_negative)
    sold_tickets: int = attrs.field(default=0, validator=_validate_non_negative)
    cancelled_tickets: int = attrs.field(default=0, validator=_validate_non_negative)
    status: InventoryStatus = InventoryStatus.ACTIVE
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        event_id: str,
        total_tickets: int,
        base_price: Decimal,
        currency: str,
        sale_start: datetime,
        sale_end: datetime,
    ) -> 'Inventory':
        if total_tickets < 0:
            raise InvariantViolationError('total_tickets cannot be negative')
        if base_price < 0:
            raise InvariantViolationError('base_price cannot be negative')
        if sale_end < sale_start:
            raise InvariantViolationError('sale_end cannot be before sale_start')

        now = datetime.now(timezone.utc)
        return cls(
            event_id=event_id,
            total_tickets=total_tickets,
            available_tickets=total_tickets,
            base_price=base_price,
            currency=currency,
            sale_start=sale_start,
            sale_end=sale_end,
            status=InventoryStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

    # ========== Derived state ==========

    @property
    def is_closed(self) -> bool:
        return self.status == InventoryStatus.CLOSED

    @property
    def effective_status(self) -> InventoryStatus:
        """`sold_out` is observed, never stored."""
        if self.status == InventoryStatus.ACTIVE and self.available_tickets == 0:
            return InventoryStatus.SOLD_OUT
        return self.status

    @property
    def committed_tickets(self) -> int:
        """Tickets that can no longer be taken off sale: sold + reserved + cancelled."""
        return self.total_tickets - self.available_tickets

    def check_conservation(self) -> None:
        counted = (
            self.available_tickets
            + self.reserved_tickets
            + self.sold_tickets
            + self.cancelled_tickets
        )
        if counted != self.total_tickets:
            raise InvariantViolationError(
                f'Inventory {self.event_id} counters do not add up: '
                f'total={self.total_tickets} counted={counted}'
            )

    def ensure_on_sale(self, *, now: datetime) -> None:
        if self.status != InventoryStatus.ACTIVE:
            raise InventoryNotOnSaleError(f'Tickets for event {self.event_id} are not on sale')
        if now < self.sale_start or now > self.sale_end:
            raise InventoryNotOnSaleError(
                f'Ticket sales for event {self.event_id} are outside the sale window'
            )
        if self.available_tickets == 0:
            raise SoldOutError(f'No tickets available for event {self.event_id}')

    # ========== Counter moves ==========

    def record_transition(self, *, from_status: TicketStatus, to_status: TicketStatus) -> 'Inventory':
        """Move one unit between the counters that tally the ticket's old and new status."""
        changes: dict[str, int] = {}
        from_counter = COUNTER_BY_STATUS[from_status]
        changes[from_counter] = getattr(self, from_counter) - 1

        if to_status == TicketStatus.WITHDRAWN:
            changes['total_tickets'] = self.total_tickets - 1
        else:
            to_counter = COUNTER_BY_STATUS[to_status]
            if to_counter == from_counter:
                return self
            changes[to_counter] = getattr(self, to_counter) + 1

        inventory = attrs.evolve(self, updated_at=datetime.now(timezone.utc), **changes)
        inventory.check_conservation()
        return inventory

    @Logger.io
    def grow(self, *, count: int) -> 'Inventory':
        if count <= 0:
            return self
        return attrs.evolve(
            self,
            total_tickets=self.total_tickets + count,
            available_tickets=self.available_tickets + count,
            updated_at=datetime.now(timezone.utc),
        )

    def ensure_can_shrink_to(self, new_total: int) -> None:
        if new_total < self.committed_tickets:
            raise InventoryResizeError(
                f'Cannot resize event {self.event_id} to {new_total} tickets: '
                f'{self.sold_tickets} sold, {self.reserved_tickets} reserved and '
                f'{self.cancelled_tickets} cancelled tickets must be kept'
            )

    def reprice(self, *, base_price: Optional[Decimal], currency: Optional[str]) -> 'Inventory':
        if base_price is None and currency is None:
            return self
        return attrs.evolve(
            self,
            base_price=base_price if base_price is not None else self.base_price,
            currency=currency or self.currency,
            updated_at=datetime.now(timezone.utc),
        )

    @Logger.io
    def close(self) -> 'Inventory':
        """Mark closed and fold every open (available/reserved) unit into `cancelled`."""
        return attrs.evolve(
            self,
            status=InventoryStatus.CLOSED,
            cancelled_tickets=self.cancelled_tickets
            + self.available_tickets
            + self.reserved_tickets,
            available_tickets=0,
            reserved_tickets=0,
            updated_at=datetime.now(timezone.utc),
        )
