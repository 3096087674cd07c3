"""
Ticket State Machine

    available ──reserve──> reserved ──purchase──> purchased ──redeem──> used
                              │                       │
                              └──────cancel───────────┴──> cancelled

System-only edges (never reachable from a user request):
- expire:   reserved -> available        (reservation lapsed, seat goes back on sale)
- close:    available/reserved/purchased/used -> cancelled   (owning event cancelled)
- withdraw: available -> withdrawn      (inventory resized down)

Every status except `withdrawn` is tallied in exactly one Inventory counter,
so each transition is also a move of one unit between two counters.
"""

from enum import StrEnum

from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.ticketing_error import WrongStatusError


class TicketTransition(StrEnum):
    RESERVE = 'reserve'
    PURCHASE = 'purchase'
    REDEEM = 'redeem'
    CANCEL = 'cancel'
    EXPIRE = 'expire'
    CLOSE = 'close'
    WITHDRAW = 'withdraw'


TRANSITIONS: dict[TicketTransition, tuple[frozenset[TicketStatus], TicketStatus]] = {
    TicketTransition.RESERVE: (frozenset({TicketStatus.AVAILABLE}), TicketStatus.RESERVED),
    TicketTransition.PURCHASE: (frozenset({TicketStatus.RESERVED}), TicketStatus.PURCHASED),
    TicketTransition.REDEEM: (frozenset({TicketStatus.PURCHASED}), TicketStatus.USED),
    TicketTransition.CANCEL: (
        frozenset({TicketStatus.RESERVED, TicketStatus.PURCHASED}),
        TicketStatus.CANCELLED,
    ),
    TicketTransition.EXPIRE: (frozenset({TicketStatus.RESERVED}), TicketStatus.AVAILABLE),
    TicketTransition.CLOSE: (
        frozenset(
            {
                TicketStatus.AVAILABLE,
                TicketStatus.RESERVED,
                TicketStatus.PURCHASED,
                TicketStatus.USED,
            }
        ),
        TicketStatus.CANCELLED,
    ),
    TicketTransition.WITHDRAW: (frozenset({TicketStatus.AVAILABLE}), TicketStatus.WITHDRAWN),
}

# Inventory counter each status is tallied in (withdrawn tickets are outside the pool)
COUNTER_BY_STATUS: dict[TicketStatus, str] = {
    TicketStatus.AVAILABLE: 'available_tickets',
    TicketStatus.RESERVED: 'reserved_tickets',
    TicketStatus.PURCHASED: 'sold_tickets',
    TicketStatus.USED: 'sold_tickets',
    TicketStatus.CANCELLED: 'cancelled_tickets',
}


def can_transition(current: TicketStatus, transition: TicketTransition) -> bool:
    allowed_from, _ = TRANSITIONS[transition]
    return current in allowed_from


def next_status(current: TicketStatus, transition: TicketTransition) -> TicketStatus:
    allowed_from, target = TRANSITIONS[transition]
    if current not in allowed_from:
        raise WrongStatusError(f'Cannot {transition} a ticket that is {current}')
    return target
