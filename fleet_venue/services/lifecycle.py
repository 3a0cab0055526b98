"""
Booking lifecycle state machine.

Both vehicle assignments and room reservations move through the same states:

    PENDING    -> AUTHORIZED | CANCELLED
    AUTHORIZED -> ACTIVE | FINALIZED | CANCELLED
    ACTIVE     -> FINALIZED | CANCELLED

FINALIZED and CANCELLED are terminal. A transition runs the target state's
guard (``_guard_<state>``), then its side effects (``_apply_<state>``), then
writes the status and an audit row. Nothing is committed here; the calling
service owns the transaction and rolls everything back if a guard or a side
effect raises.
"""
import logging
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from fleet_venue.models.booking import BookingStatus
from fleet_venue.models.payment import Payment
from fleet_venue.models.resource import ResourceStatus
from fleet_venue.models.trip_log import TripLog
from fleet_venue.models.user import User
from fleet_venue.services.conflict_checker import (
    check_assignment_conflicts, check_reservation_conflicts,
)
from fleet_venue.services.license_service import find_valid_license
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import (
    InvalidTransitionException, InvalidLicenseException,
    InvalidOdometerException, PaymentRequiredException, ResourceUnavailableException,
    ValidationException,
)

logger = logging.getLogger(__name__)


TRANSITIONS: dict[BookingStatus, frozenset] = {
    BookingStatus.PENDING:    frozenset({BookingStatus.AUTHORIZED, BookingStatus.CANCELLED}),
    BookingStatus.AUTHORIZED: frozenset({BookingStatus.ACTIVE, BookingStatus.FINALIZED, BookingStatus.CANCELLED}),
    BookingStatus.ACTIVE:     frozenset({BookingStatus.FINALIZED, BookingStatus.CANCELLED}),
    BookingStatus.FINALIZED:  frozenset(),
    BookingStatus.CANCELLED:  frozenset(),
}

_ACTION_VERBS = {
    BookingStatus.PENDING:    "CREATE",
    BookingStatus.AUTHORIZED: "AUTHORIZE",
    BookingStatus.ACTIVE:     "START",
    BookingStatus.FINALIZED:  "FINALIZE",
    BookingStatus.CANCELLED:  "CANCEL",
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[current]


def append_note(existing: str | None, text: str) -> str:
    return f"{existing} | {text}" if existing else text


def parse_statuses(values: list[str] | None) -> list[BookingStatus] | None:
    if not values:
        return None
    try:
        return [BookingStatus(v.strip().upper()) for v in values]
    except ValueError:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise ValidationException(f"Unknown status in {values}; expected one of {allowed}", field="status")


def utcnow_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LifecycleEngine:
    entity_type = "Booking"

    def transition(self, db: Session, booking, target: BookingStatus, actor: User | None, **context):
        current = booking.status
        if not can_transition(current, target):
            raise InvalidTransitionException(current.value, target.value)

        guard = getattr(self, f"_guard_{target.value.lower()}", None)
        if guard:
            guard(db, booking, actor, **context)
        effect = getattr(self, f"_apply_{target.value.lower()}", None)
        if effect:
            effect(db, booking, current, actor, **context)

        booking.status = target
        log_action(db, actor.id if actor else None, _ACTION_VERBS[target], self.entity_type, booking.id,
                   f"{self.entity_type} #{booking.id}: {current.value} -> {target.value}")
        logger.info(f"{self.entity_type} #{booking.id} {current.value} -> {target.value}")
        return booking

    def enter(self, db: Session, booking, actor: User | None, **context):
        """Side effects of the initial state of a freshly inserted booking."""
        effect = getattr(self, f"_apply_{booking.status.value.lower()}", None)
        if effect:
            effect(db, booking, None, actor, **context)
        log_action(db, actor.id if actor else None, "CREATE", self.entity_type, booking.id,
                   f"{self.entity_type} #{booking.id} created as {booking.status.value}")
        return booking


# ─── Vehicle assignments ──────────────────────────────────────────────────────
class AssignmentLifecycle(LifecycleEngine):
    entity_type = "VehicleAssignment"

    def check_driver_license(self, db: Session, driver_id: int) -> None:
        if not find_valid_license(db, driver_id, date.today()):
            raise InvalidLicenseException()

    def check_vehicle_available(self, vehicle) -> None:
        if vehicle.resource.status in (ResourceStatus.MAINTENANCE, ResourceStatus.INACTIVE):
            raise ResourceUnavailableException(
                f"Vehicle {vehicle.plateNumber} is {vehicle.resource.status.value}"
            )

    def _guard_window(self, db: Session, a, actor, **context):
        self.check_vehicle_available(a.vehicle)
        check_assignment_conflicts(db, a.vehicle, a.startDate, a.endDate, exclude_id=a.id)
        self.check_driver_license(db, a.driverId)

    _guard_authorized = _guard_window
    _guard_active = _guard_window

    def _apply_authorized(self, db: Session, a, previous, actor, **context):
        a.vehicle.resource.status = ResourceStatus.IN_USE
        a.authorizedById = actor.id if actor else None
        a.authorizedAt = datetime.now(timezone.utc)

    def _apply_active(self, db: Session, a, previous, actor, **context):
        a.vehicle.resource.status = ResourceStatus.IN_USE
        a.vehicle.currentOdometer = a.startOdometer

    def _guard_finalized(self, db: Session, a, actor, end_odometer: int | None = None, **context):
        if end_odometer is None or end_odometer <= a.startOdometer:
            raise InvalidOdometerException(a.startOdometer, end_odometer)

    def _apply_finalized(self, db: Session, a, previous, actor, end_odometer: int = None,
                         end_fuel_level: str | None = None, notes: str | None = None,
                         returned_at: datetime | None = None, **context):
        returned_at = returned_at or utcnow_naive()
        distance = end_odometer - a.startOdometer

        a.endOdometer = end_odometer
        a.endFuelLevel = end_fuel_level
        a.closedAt = datetime.now(timezone.utc)
        if a.endDate is None:
            a.endDate = max(returned_at, a.startDate)
        if notes:
            a.notes = append_note(a.notes, f"Closing: {notes}")

        a.vehicle.resource.status = ResourceStatus.AVAILABLE
        a.vehicle.currentOdometer = end_odometer

        a.trip_logs.append(TripLog(
            vehicleId=a.vehicleId,
            driverId=a.driverId,
            departureAt=a.startDate,
            returnAt=returned_at,
            startOdometer=a.startOdometer,
            endOdometer=end_odometer,
            distance=distance,
            startFuelLevel=a.startFuelLevel,
            endFuelLevel=end_fuel_level,
            notes=notes,
        ))

    def _apply_cancelled(self, db: Session, a, previous, actor, reason: str | None = None, **context):
        if previous in (BookingStatus.ACTIVE, BookingStatus.AUTHORIZED):
            a.vehicle.resource.status = ResourceStatus.AVAILABLE
        who = actor.name if actor else "system"
        a.notes = append_note(a.notes, f"Cancelled by {who}. Reason: {reason or 'not given'}")
        a.closedAt = datetime.now(timezone.utc)


# ─── Room reservations ────────────────────────────────────────────────────────
class ReservationLifecycle(LifecycleEngine):
    entity_type = "RoomReservation"

    def _check_window(self, db: Session, r):
        check_reservation_conflicts(db, r.room, r.eventDate, r.startTime, r.endTime, exclude_id=r.id)

    def _guard_authorized(self, db: Session, r, actor, **context):
        if not db.query(Payment).filter(Payment.reservationId == r.id).first():
            raise PaymentRequiredException()
        self._check_window(db, r)

    def _guard_active(self, db: Session, r, actor, **context):
        self._check_window(db, r)

    def _apply_finalized(self, db: Session, r, previous, actor, **context):
        r.contractIssuedAt = datetime.now(timezone.utc)

    def _apply_cancelled(self, db: Session, r, previous, actor, reason: str | None = None, **context):
        who = actor.name if actor else "system"
        r.notes = append_note(r.notes, f"Cancelled by {who}. Reason: {reason or 'not given'}")


assignment_lifecycle = AssignmentLifecycle()
reservation_lifecycle = ReservationLifecycle()
