from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import attrs

from ticket_inventory.platform.exception.exceptions import ForbiddenError
from ticket_inventory.platform.logging.loguru_io import Logger
from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.ticket_state_machine import (
    TicketTransition,
    can_transition,
    next_status,
)
from ticket_inventory.service.ticketing.domain.ticketing_error import (
    InvalidProofError,
    NotCancellableError,
    NotYourReservationError,
    ReservationExpiredError,
    WrongStatusError,
)
from ticket_inventory.service.ticketing.domain.value_object.redemption_proof import (
    RedemptionProof,
    verify_redemption_proof,
)
from ticket_inventory.service.ticketing.domain.value_object.seat_info import SeatInfo


@attrs.define
class Ticket:
    event_id: str
    inventory_id: int
    price: Decimal
    currency: str
    seat: SeatInfo
    status: TicketStatus = TicketStatus.AVAILABLE
    user_id: Optional[str] = None
    reserved_until: Optional[datetime] = None
    purchase_date: Optional[datetime] = None
    qr_proof: Optional[str] = None
    validation_code: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def generate(
        cls,
        *,
        event_id: str,
        inventory_id: int,
        price: Decimal,
        currency: str,
        start_index: int,
        count: int,
    ) -> List['Ticket']:
        """Materialize `count` available tickets with consecutive seat indexes."""
        now = datetime.now(timezone.utc)
        return [
            cls(
                event_id=event_id,
                inventory_id=inventory_id,
                price=price,
                currency=currency,
                seat=SeatInfo.from_index(index),
                status=TicketStatus.AVAILABLE,
                created_at=now,
                updated_at=now,
            )
            for index in range(start_index, start_index + count)
        ]

    def is_reservation_expired(self, *, now: datetime) -> bool:
        return (
            self.status == TicketStatus.RESERVED
            and self.reserved_until is not None
            and self.reserved_until <= now
        )

    # ========== User transitions ==========

    @Logger.io
    def reserve(self, *, user_id: str, now: datetime, ttl: timedelta) -> 'Ticket':
        status = next_status(self.status, TicketTransition.RESERVE)
        return attrs.evolve(
            self, status=status, user_id=user_id, reserved_until=now + ttl, updated_at=now
        )

    @Logger.io
    def purchase(self, *, user_id: str, now: datetime) -> 'Ticket':
        if self.user_id != user_id:
            raise NotYourReservationError('This ticket is not reserved by you')
        if not can_transition(self.status, TicketTransition.PURCHASE):
            raise NotYourReservationError(
                f'Ticket {self.id} cannot be purchased because it is {self.status}'
            )
        if self.is_reservation_expired(now=now):
            raise ReservationExpiredError(f'Reservation for ticket {self.id} has expired')

        proof = RedemptionProof.issue(
            ticket_id=self.id, event_id=self.event_id, user_id=user_id, issued_at=now
        )
        return attrs.evolve(
            self,
            status=next_status(self.status, TicketTransition.PURCHASE),
            purchase_date=now,
            reserved_until=None,
            validation_code=proof.validation_code,
            qr_proof=proof.encode(),
            updated_at=now,
        )

    @Logger.io
    def redeem(self, *, presented_proof: str, now: datetime) -> 'Ticket':
        if self.status != TicketStatus.PURCHASED:
            raise WrongStatusError(f'Ticket {self.id} is {self.status} and cannot be validated')
        if not verify_redemption_proof(
            ticket_id=self.id,
            event_id=self.event_id,
            user_id=self.user_id,
            validation_code=self.validation_code,
            presented=presented_proof,
        ):
            raise InvalidProofError(f'Invalid QR code for ticket {self.id}')
        return attrs.evolve(
            self, status=next_status(self.status, TicketTransition.REDEEM), updated_at=now
        )

    @Logger.io
    def cancel(self, *, actor_id: str, is_admin: bool, now: datetime) -> 'Ticket':
        if self.user_id != actor_id and not is_admin:
            raise ForbiddenError('Not authorized to cancel this ticket')
        if not can_transition(self.status, TicketTransition.CANCEL):
            raise NotCancellableError(f'Ticket {self.id} is {self.status} and cannot be cancelled')
        return attrs.evolve(
            self,
            status=next_status(self.status, TicketTransition.CANCEL),
            reserved_until=None,
            updated_at=now,
        )

    # ========== System transitions ==========

    def expire(self, *, now: datetime) -> 'Ticket':
        if not self.is_reservation_expired(now=now):
            raise WrongStatusError(f'Reservation for ticket {self.id} has not expired')
        return attrs.evolve(
            self,
            status=next_status(self.status, TicketTransition.EXPIRE),
            user_id=None,
            reserved_until=None,
            updated_at=now,
        )

    def close_for_event(self, *, now: datetime) -> 'Ticket':
        return attrs.evolve(
            self,
            status=next_status(self.status, TicketTransition.CLOSE),
            reserved_until=None,
            updated_at=now,
        )

    def withdraw(self, *, now: datetime) -> 'Ticket':
        return attrs.evolve(
            self, status=next_status(self.status, TicketTransition.WITHDRAW), updated_at=now
        )
