from enum import StrEnum


class TicketStatus(StrEnum):
    AVAILABLE = 'available'
    RESERVED = 'reserved'
    PURCHASED = 'purchased'
    USED = 'used'
    CANCELLED = 'cancelled'
    # Terminal, outside the counted pool: removed from sale by a resize-down
    WITHDRAWN = 'withdrawn'


# Statuses that belong to a user (shown in "my tickets")
USER_VISIBLE_STATUSES = (
    TicketStatus.RESERVED,
    TicketStatus.PURCHASED,
    TicketStatus.USED,
    TicketStatus.CANCELLED,
)
