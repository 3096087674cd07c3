"""
Ticketing domain errors

Every guard failure has its own type and `code` so that callers can tell
"sold out" from "not yours" from "already used" without parsing messages.
"""

from ticket_inventory.platform.exception.exceptions import (
    ConflictError,
    CustomBaseError,
    DomainError,
    InvariantViolationError,
    NotFoundError,
    UpstreamUnavailableError,
)


# ========== Not found ==========


class InventoryNotFoundError(NotFoundError):
    code = 'inventory_not_found'


class TicketNotFoundError(NotFoundError):
    code = 'ticket_not_found'


# ========== Event availability (reserve pre-check against the catalog) ==========


class EventUnavailableError(CustomBaseError):
    """The catalog does not confirm the event as published."""

    code = 'event_unavailable'

    def __init__(self, message: str, status_code: int = 409) -> None:
        CustomBaseError.__init__(self, message, status_code)


class EventNotFoundError(EventUnavailableError, NotFoundError):
    code = 'event_not_found'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class CatalogUnavailableError(EventUnavailableError, UpstreamUnavailableError):
    code = 'catalog_unavailable'

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


# ========== Conflicts (guard failures) ==========


class SoldOutError(ConflictError):
    code = 'sold_out'


class InventoryNotOnSaleError(ConflictError):
    code = 'not_on_sale'


class InventoryAlreadyExistsError(ConflictError):
    code = 'inventory_exists'


class NotYourReservationError(ConflictError):
    code = 'not_your_reservation'


class ReservationExpiredError(ConflictError):
    code = 'reservation_expired'


class NotCancellableError(ConflictError):
    code = 'not_cancellable'


class WrongStatusError(ConflictError):
    code = 'wrong_status'


# ========== Proof / invariants ==========


class InvalidProofError(DomainError):
    code = 'invalid_proof'

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class InventoryResizeError(InvariantViolationError):
    code = 'resize_below_committed'
