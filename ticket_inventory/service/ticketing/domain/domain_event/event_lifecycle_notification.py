"""
Event Lifecycle Notifications (inbound)

Facts broadcast by the event catalog. Parsing is strict: a payload that
cannot be turned into one of these is unprocessable and is dead-lettered
instead of retried.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import attrs

from ticket_inventory.platform.exception.exceptions import UnprocessableMessageError


CANCELLED_STATUS = 'cancelled'

# Column limits of ticket_inventory: event_id String(64), currency String(3), prices Numeric(10, 2)
MAX_EVENT_ID_LENGTH = 64
CURRENCY_LENGTH = 3
MAX_PRICE = Decimal('99999999.99')


def _require(payload: Dict[str, Any], field: str) -> Any:
    value = payload.get(field)
    if value is None or value == '':
        raise UnprocessableMessageError(f'Missing required field: {field}')
    return value


def _parse_event_id(payload: Dict[str, Any]) -> str:
    event_id = str(_require(payload, 'id'))
    if len(event_id) > MAX_EVENT_ID_LENGTH:
        raise UnprocessableMessageError(
            f'id is longer than {MAX_EVENT_ID_LENGTH} characters: {event_id[:MAX_EVENT_ID_LENGTH]}...'
        )
    return event_id


def _parse_currency(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    if (
        not isinstance(value, str)
        or len(value) != CURRENCY_LENGTH
        or not (value.isascii() and value.isalpha())
    ):
        raise UnprocessableMessageError(f'currency must be a 3-letter ISO 4217 code: {value!r}')
    return value.upper()


def _parse_count(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise UnprocessableMessageError(f'{field} must be an integer')
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise UnprocessableMessageError(f'{field} must be an integer') from e
    if count < 0:
        raise UnprocessableMessageError(f'{field} cannot be negative')
    return count


def _parse_price(value: Any) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        price = Decimal(str(value)).quantize(Decimal('0.01'))
    except InvalidOperation as e:
        raise UnprocessableMessageError(f'ticketPrice is not a number: {value}') from e
    if not price.is_finite():
        raise UnprocessableMessageError(f'ticketPrice is not a finite number: {value}')
    if price < 0:
        raise UnprocessableMessageError('ticketPrice cannot be negative')
    if price > MAX_PRICE:
        raise UnprocessableMessageError(f'ticketPrice is above {MAX_PRICE}: {value}')
    return price


def _parse_datetime(value: Any, field: str) -> datetime:
    if not isinstance(value, str):
        raise UnprocessableMessageError(f'{field} must be an ISO-8601 string')
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError as e:
        raise UnprocessableMessageError(f'{field} is not an ISO-8601 date: {value}') from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@attrs.frozen
class EventCreatedNotification:
    event_id: str
    tickets_available: int
    ticket_price: Decimal
    currency: Optional[str]
    start_date: datetime

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'EventCreatedNotification':
        price = _parse_price(_require(payload, 'ticketPrice'))
        return cls(
            event_id=_parse_event_id(payload),
            tickets_available=_parse_count(
                _require(payload, 'ticketsAvailable'), 'ticketsAvailable'
            ),
            ticket_price=price,
            currency=_parse_currency(payload.get('currency')),
            start_date=_parse_datetime(_require(payload, 'startDate'), 'startDate'),
        )


@attrs.frozen
class EventUpdatedNotification:
    event_id: str
    tickets_available: Optional[int]
    ticket_price: Optional[Decimal]
    currency: Optional[str]
    status: Optional[str]

    @property
    def is_cancellation(self) -> bool:
        return self.status == CANCELLED_STATUS

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'EventUpdatedNotification':
        tickets_available = payload.get('ticketsAvailable')
        return cls(
            event_id=_parse_event_id(payload),
            tickets_available=(
                None
                if tickets_available is None
                else _parse_count(tickets_available, 'ticketsAvailable')
            ),
            ticket_price=_parse_price(payload.get('ticketPrice')),
            currency=_parse_currency(payload.get('currency')),
            status=payload.get('status'),
        )


@attrs.frozen
class EventCancelledNotification:
    event_id: str
    title: Optional[str] = None
    organizer_id: Optional[str] = None
    start_date: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'EventCancelledNotification':
        organizer_id = payload.get('organizerId')
        return cls(
            event_id=_parse_event_id(payload),
            title=payload.get('title'),
            organizer_id=None if organizer_id is None else str(organizer_id),
            start_date=payload.get('startDate'),
        )
