"""
Unit tests for the ticket state machine

Every (status, transition) pair is checked against the transition table;
terminal statuses allow nothing.
"""

import pytest

from ticket_inventory.service.ticketing.domain.enum.ticket_status import TicketStatus
from ticket_inventory.service.ticketing.domain.ticket_state_machine import (
    COUNTER_BY_STATUS,
    TicketTransition,
    can_transition,
    next_status,
)
from ticket_inventory.service.ticketing.domain.ticketing_error import WrongStatusError


ALLOWED = {
    (TicketStatus.AVAILABLE, TicketTransition.RESERVE): TicketStatus.RESERVED,
    (TicketStatus.RESERVED, TicketTransition.PURCHASE): TicketStatus.PURCHASED,
    (TicketStatus.PURCHASED, TicketTransition.REDEEM): TicketStatus.USED,
    (TicketStatus.RESERVED, TicketTransition.CANCEL): TicketStatus.CANCELLED,
    (TicketStatus.PURCHASED, TicketTransition.CANCEL): TicketStatus.CANCELLED,
    (TicketStatus.RESERVED, TicketTransition.EXPIRE): TicketStatus.AVAILABLE,
    (TicketStatus.AVAILABLE, TicketTransition.CLOSE): TicketStatus.CANCELLED,
    (TicketStatus.RESERVED, TicketTransition.CLOSE): TicketStatus.CANCELLED,
    (TicketStatus.PURCHASED, TicketTransition.CLOSE): TicketStatus.CANCELLED,
    (TicketStatus.USED, TicketTransition.CLOSE): TicketStatus.CANCELLED,
    (TicketStatus.AVAILABLE, TicketTransition.WITHDRAW): TicketStatus.WITHDRAWN,
}


@pytest.mark.unit
class TestTicketStateMachine:
    @pytest.mark.parametrize('status', list(TicketStatus))
    @pytest.mark.parametrize('transition', list(TicketTransition))
    def test_transition_table(self, status: TicketStatus, transition: TicketTransition) -> None:
        expected = ALLOWED.get((status, transition))

        assert can_transition(status, transition) is (expected is not None)
        if expected is None:
            with pytest.raises(WrongStatusError):
                next_status(status, transition)
        else:
            assert next_status(status, transition) == expected

    @pytest.mark.parametrize('status', [TicketStatus.CANCELLED, TicketStatus.WITHDRAWN])
    def test_terminal_statuses_have_no_exit(self, status: TicketStatus) -> None:
        assert not any(can_transition(status, transition) for transition in TicketTransition)

    def test_every_counted_status_maps_to_one_counter(self) -> None:
        assert set(COUNTER_BY_STATUS) == set(TicketStatus) - {TicketStatus.WITHDRAWN}
        assert COUNTER_BY_STATUS[TicketStatus.USED] == COUNTER_BY_STATUS[TicketStatus.PURCHASED]
