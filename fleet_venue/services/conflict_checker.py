"""
Time-window overlap detection for vehicle assignments and room reservations.

Windows are half-open ``[start, end)``: a booking ending at 10:00 and another
starting at 10:00 do not conflict. A missing end means the window is open and
extends indefinitely. Only bookings in PENDING, AUTHORIZED or ACTIVE hold
their window.

Callers that go on to write must hold the resource lock (``lock_resource``)
for the rest of their transaction, otherwise two writers can both pass the
check.
"""
import logging
from datetime import date, datetime, time

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from fleet_venue.models.booking import NON_TERMINAL_STATUSES
from fleet_venue.models.resource import Resource
from fleet_venue.models.room import Room
from fleet_venue.models.reservation import RoomReservation
from fleet_venue.models.vehicle import Vehicle
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.utils.exceptions import BookingConflictException

logger = logging.getLogger(__name__)

# Advisory lock namespace shared by every bookable resource
RESOURCE_LOCK_NAMESPACE = 7301


# ─── Pure predicate ───────────────────────────────────────────────────────────
def windows_overlap(a_start, a_end, b_start, b_end) -> bool:
    """True when [a_start, a_end) and [b_start, b_end) intersect. None end = open."""
    if a_end is not None and a_end <= b_start:
        return False
    if b_end is not None and b_end <= a_start:
        return False
    return True


# ─── Locking ──────────────────────────────────────────────────────────────────
def lock_resource(db: Session, resource_id: int) -> None:
    """
    Serialize writers on one resource until the current transaction ends.

    PostgreSQL takes a transaction-scoped advisory lock; other backends lock
    the resource row itself.
    """
    if db.get_bind().dialect.name == "postgresql":
        db.execute(select(func.pg_advisory_xact_lock(RESOURCE_LOCK_NAMESPACE, resource_id)))
        return
    db.query(Resource).filter(Resource.id == resource_id).with_for_update().first()


# ─── Vehicle assignments ──────────────────────────────────────────────────────
def _assignment_conflict(a: VehicleAssignment) -> dict:
    return {
        "id":           a.id,
        "title":        a.purpose or a.destination or f"Assignment #{a.id}",
        "status":       a.status.value,
        "start":        a.startDate.isoformat(),
        "end":          a.endDate.isoformat() if a.endDate else None,
        "resourceId":   a.vehicle.resourceId,
        "resourceName": a.vehicle.resource.name,
    }


def find_assignment_conflicts(
    db: Session,
    vehicle_id: int,
    start: datetime,
    end: datetime | None,
    exclude_id: int | None = None,
) -> list[dict]:
    q = db.query(VehicleAssignment).filter(
        VehicleAssignment.vehicleId == vehicle_id,
        VehicleAssignment.status.in_(NON_TERMINAL_STATUSES),
        or_(VehicleAssignment.endDate.is_(None), VehicleAssignment.endDate > start),
    )
    if end is not None:
        q = q.filter(VehicleAssignment.startDate < end)
    if exclude_id:
        q = q.filter(VehicleAssignment.id != exclude_id)
    return [_assignment_conflict(a) for a in q.order_by(VehicleAssignment.startDate).all()]


def check_assignment_conflicts(
    db: Session,
    vehicle: Vehicle,
    start: datetime,
    end: datetime | None,
    exclude_id: int | None = None,
) -> None:
    conflicts = find_assignment_conflicts(db, vehicle.id, start, end, exclude_id)
    if conflicts:
        logger.info(f"Vehicle {vehicle.plateNumber}: {len(conflicts)} conflicting assignment(s)")
        raise BookingConflictException(conflicts)


# ─── Room reservations ────────────────────────────────────────────────────────
def _reservation_conflict(r: RoomReservation) -> dict:
    return {
        "id":           r.id,
        "title":        r.eventName,
        "status":       r.status.value,
        "start":        datetime.combine(r.eventDate, r.startTime).isoformat(),
        "end":          datetime.combine(r.eventDate, r.endTime).isoformat(),
        "resourceId":   r.room.resourceId,
        "resourceName": r.room.resource.name,
    }


def find_reservation_conflicts(
    db: Session,
    event_date: date,
    start_time: time,
    end_time: time | None,
    room_id: int | None = None,
    exclude_id: int | None = None,
) -> list[dict]:
    """
    Reservations on ``event_date`` overlapping ``[start_time, end_time)``.
    ``end_time`` None turns this into a point check (``start <= t < end``).
    ``room_id`` None searches every room.
    """
    q = db.query(RoomReservation).filter(
        RoomReservation.eventDate == event_date,
        RoomReservation.status.in_(NON_TERMINAL_STATUSES),
        RoomReservation.endTime > start_time,
    )
    if end_time is not None:
        q = q.filter(RoomReservation.startTime < end_time)
    else:
        q = q.filter(RoomReservation.startTime <= start_time)
    if room_id:
        q = q.filter(RoomReservation.roomId == room_id)
    if exclude_id:
        q = q.filter(RoomReservation.id != exclude_id)
    return [_reservation_conflict(r) for r in q.order_by(RoomReservation.startTime).all()]


def check_reservation_conflicts(
    db: Session,
    room: Room,
    event_date: date,
    start_time: time,
    end_time: time,
    exclude_id: int | None = None,
) -> None:
    conflicts = find_reservation_conflicts(db, event_date, start_time, end_time, room.id, exclude_id)
    if conflicts:
        logger.info(f"Room {room.resource.name} on {event_date}: {len(conflicts)} conflicting reservation(s)")
        raise BookingConflictException(conflicts)
