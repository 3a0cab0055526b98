"""
Half-open window overlap: the pure predicate and the database queries built on it.
"""
from datetime import date, datetime, time

from hypothesis import given, strategies as st

from fleet_venue.models import BookingStatus, RequesterType, RoomReservation, VehicleAssignment
from fleet_venue.services.conflict_checker import (
    windows_overlap, find_assignment_conflicts, find_reservation_conflicts,
)

windows = st.tuples(st.integers(0, 200), st.integers(1, 50)).map(lambda t: (t[0], t[0] + t[1]))
open_windows = st.integers(0, 200).map(lambda s: (s, None))
any_windows = st.one_of(windows, open_windows)


# ─── Predicate ────────────────────────────────────────────────────────────────
@given(any_windows, any_windows)
def test_overlap_is_symmetric(a, b):
    assert windows_overlap(a[0], a[1], b[0], b[1]) == windows_overlap(b[0], b[1], a[0], a[1])


@given(any_windows, any_windows)
def test_overlap_matches_shared_instant(a, b):
    def holds(w, t): return w[0] <= t and (w[1] is None or t < w[1])
    shared = any(holds(a, t) and holds(b, t) for t in range(0, 251))
    assert windows_overlap(a[0], a[1], b[0], b[1]) == shared


@given(st.integers(0, 100), st.integers(1, 50), st.integers(1, 50))
def test_touching_windows_do_not_overlap(start, first_len, second_len):
    boundary = start + first_len
    assert not windows_overlap(start, boundary, boundary, boundary + second_len)


@given(st.integers(0, 100), st.integers(0, 500), st.integers(1, 50))
def test_open_window_blocks_everything_after_its_start(start, offset, length):
    later = start + offset
    assert windows_overlap(start, None, later, later + length)


def test_open_window_does_not_block_earlier_closed_window():
    assert not windows_overlap(10, None, 2, 10)


# ─── Vehicle assignments ──────────────────────────────────────────────────────
def _assignment(db, vehicle, driver, start, end, status=BookingStatus.PENDING):
    a = VehicleAssignment(vehicleId=vehicle.id, driverId=driver.id, startDate=start, endDate=end,
                          startOdometer=vehicle.currentOdometer, status=status)
    db.add(a)
    db.commit()
    return a


def test_assignment_conflict_found_and_reported(db, vehicle, driver):
    existing = _assignment(db, vehicle, driver, datetime(2030, 1, 10, 8), datetime(2030, 1, 10, 12))

    conflicts = find_assignment_conflicts(db, vehicle.id, datetime(2030, 1, 10, 11), datetime(2030, 1, 10, 14))

    assert [c["id"] for c in conflicts] == [existing.id]
    assert conflicts[0]["resourceName"] == "Toyota Hilux P123ABC"
    assert conflicts[0]["status"] == "PENDING"


def test_assignment_touching_boundary_is_free(db, vehicle, driver):
    _assignment(db, vehicle, driver, datetime(2030, 1, 10, 8), datetime(2030, 1, 10, 10))
    assert find_assignment_conflicts(db, vehicle.id, datetime(2030, 1, 10, 10), datetime(2030, 1, 10, 12)) == []
    assert find_assignment_conflicts(db, vehicle.id, datetime(2030, 1, 10, 6), datetime(2030, 1, 10, 8)) == []


def test_terminal_assignments_release_their_window(db, vehicle, driver):
    _assignment(db, vehicle, driver, datetime(2030, 1, 10, 8), datetime(2030, 1, 10, 12), BookingStatus.CANCELLED)
    _assignment(db, vehicle, driver, datetime(2030, 1, 10, 8), datetime(2030, 1, 10, 12), BookingStatus.FINALIZED)
    assert find_assignment_conflicts(db, vehicle.id, datetime(2030, 1, 10, 9), datetime(2030, 1, 10, 10)) == []


def test_open_ended_assignment_conflicts_with_later_window(db, vehicle, driver):
    existing = _assignment(db, vehicle, driver, datetime(2030, 1, 10, 8), None)
    conflicts = find_assignment_conflicts(db, vehicle.id, datetime(2030, 6, 1, 8), datetime(2030, 6, 1, 9))
    assert [c["id"] for c in conflicts] == [existing.id]
    assert conflicts[0]["end"] is None


def test_assignment_excluded_from_its_own_check(db, vehicle, driver):
    existing = _assignment(db, vehicle, driver, datetime(2030, 1, 10, 8), datetime(2030, 1, 10, 12))
    assert find_assignment_conflicts(
        db, vehicle.id, datetime(2030, 1, 10, 9), datetime(2030, 1, 10, 13), exclude_id=existing.id,
    ) == []


# ─── Room reservations ────────────────────────────────────────────────────────
def _reservation(db, room, employee, start, end, day=date(2030, 3, 1), status=BookingStatus.PENDING):
    r = RoomReservation(roomId=room.id, eventName="Board meeting", eventDate=day, startTime=start,
                        endTime=end, requesterType=RequesterType.INTERNAL, employeeId=employee.id,
                        status=status)
    db.add(r)
    db.commit()
    return r


def test_reservation_conflict_same_room_and_day(db, room, requester):
    existing = _reservation(db, room, requester, time(10), time(12))

    assert [c["id"] for c in find_reservation_conflicts(db, date(2030, 3, 1), time(11), time(13), room.id)] \
        == [existing.id]
    assert find_reservation_conflicts(db, date(2030, 3, 1), time(12), time(14), room.id) == []
    assert find_reservation_conflicts(db, date(2030, 3, 2), time(11), time(13), room.id) == []


def test_reservation_point_check(db, room, requester):
    existing = _reservation(db, room, requester, time(10), time(12))

    assert [c["id"] for c in find_reservation_conflicts(db, date(2030, 3, 1), time(10), None)] == [existing.id]
    assert [c["id"] for c in find_reservation_conflicts(db, date(2030, 3, 1), time(11, 59), None)] == [existing.id]
    assert find_reservation_conflicts(db, date(2030, 3, 1), time(12), None) == []
    assert find_reservation_conflicts(db, date(2030, 3, 1), time(9, 59), None) == []
