from types import SimpleNamespace

import pytest
from hypothesis import given, strategies as st

from fleet_venue.models import BookingStatus
from fleet_venue.services.lifecycle import (
    TRANSITIONS, can_transition, parse_statuses, assignment_lifecycle, reservation_lifecycle,
)
from fleet_venue.utils.exceptions import InvalidTransitionException, ValidationException

LEGAL = {
    (BookingStatus.PENDING, BookingStatus.AUTHORIZED),
    (BookingStatus.PENDING, BookingStatus.CANCELLED),
    (BookingStatus.AUTHORIZED, BookingStatus.ACTIVE),
    (BookingStatus.AUTHORIZED, BookingStatus.FINALIZED),
    (BookingStatus.AUTHORIZED, BookingStatus.CANCELLED),
    (BookingStatus.ACTIVE, BookingStatus.FINALIZED),
    (BookingStatus.ACTIVE, BookingStatus.CANCELLED),
}

statuses = st.sampled_from(list(BookingStatus))


def test_transition_table():
    table = {(src, dst) for src, targets in TRANSITIONS.items() for dst in targets}
    assert table == LEGAL


@pytest.mark.parametrize("terminal", [BookingStatus.FINALIZED, BookingStatus.CANCELLED])
def test_terminal_states_have_no_exit(terminal):
    assert not TRANSITIONS[terminal]


@given(statuses, statuses)
def test_can_transition_agrees_with_table(current, target):
    assert can_transition(current, target) == ((current, target) in LEGAL)


@given(statuses, statuses, st.sampled_from([assignment_lifecycle, reservation_lifecycle]))
def test_illegal_transition_raises_and_keeps_status(current, target, engine):
    if (current, target) in LEGAL:
        return
    booking = SimpleNamespace(id=1, status=current, notes=None)

    with pytest.raises(InvalidTransitionException) as exc:
        engine.transition(None, booking, target, None)

    assert booking.status == current
    assert booking.notes is None
    assert exc.value.status_code == 400
    assert exc.value.current == current.value
    assert exc.value.target == target.value


def test_parse_statuses_normalizes_case():
    assert parse_statuses(["pending", " Active "]) == [BookingStatus.PENDING, BookingStatus.ACTIVE]
    assert parse_statuses(None) is None
    assert parse_statuses([]) is None


def test_parse_statuses_rejects_unknown():
    with pytest.raises(ValidationException) as exc:
        parse_statuses(["PENDING", "DONE"])
    assert exc.value.status_code == 400
