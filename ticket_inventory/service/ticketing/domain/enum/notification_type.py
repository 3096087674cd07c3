from enum import StrEnum


class NotificationType(StrEnum):
    TICKET_PURCHASED = 'ticket_purchased'
    TICKET_CANCELLED = 'ticket_cancelled'
    EVENT_CANCELLED = 'event_cancelled'
