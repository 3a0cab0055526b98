"""
Vehicle assignment orchestration.

Every write runs inside one ``atomic`` unit: lock the vehicle's resource,
run the conflict check, write the assignment and let the lifecycle engine
apply the vehicle side effects. A failure anywhere rolls the unit back.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet_venue.models.booking import BookingStatus, NON_TERMINAL_STATUSES
from fleet_venue.models.catalog import AssignmentType
from fleet_venue.models.employee import Employee
from fleet_venue.models.fuel_load import FuelLoad
from fleet_venue.models.trip_log import TripLog
from fleet_venue.models.user import User
from fleet_venue.models.vehicle import Vehicle
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.schemas.assignment import (
    AssignmentCreateRequest, AssignmentUpdateRequest, AssignmentFinalizeRequest,
)
from fleet_venue.services.conflict_checker import check_assignment_conflicts, lock_resource
from fleet_venue.services.license_service import current_license
from fleet_venue.services.lifecycle import assignment_lifecycle, parse_statuses
from fleet_venue.services.query_builder import (
    QueryFilter, Equals, OneOf, AtLeast, Before, ExtractEquals,
)
from fleet_venue.utils.audit import log_action, record_field_changes
from fleet_venue.utils.exceptions import (
    NotFoundException, InvalidDateRangeException,
    StateException, ValidationException, ErrorCode,
)
from fleet_venue.utils.transaction import atomic

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = (BookingStatus.PENDING, BookingStatus.AUTHORIZED)
CONTRACT_STATUSES = (BookingStatus.AUTHORIZED, BookingStatus.ACTIVE)


def _person(e: Employee | None) -> dict | None:
    if not e:
        return None
    return {"id": e.id, "name": e.fullName, "department": e.department.name if e.department else None}


def _serialize(a: VehicleAssignment) -> dict:
    return {
        "id":     a.id,
        "status": a.status.value,
        "vehicle": {
            "id":          a.vehicle.id,
            "plateNumber": a.vehicle.plateNumber,
            "name":        a.vehicle.resource.name,
            "status":      a.vehicle.resource.status.value,
        },
        "driver":         _person(a.driver),
        "requester":      _person(a.requester),
        "assignmentType": {"id": a.assignment_type.id, "name": a.assignment_type.name}
                          if a.assignment_type else None,
        "startDate":      a.startDate.isoformat(),
        "endDate":        a.endDate.isoformat() if a.endDate else None,
        "destination":    a.destination,
        "purpose":        a.purpose,
        "startOdometer":  a.startOdometer,
        "startFuelLevel": a.startFuelLevel,
        "endOdometer":    a.endOdometer,
        "endFuelLevel":   a.endFuelLevel,
        "notes":          a.notes,
        "authorizedBy":   {"id": a.authorized_by.id, "name": a.authorized_by.name} if a.authorized_by else None,
        "authorizedAt":   a.authorizedAt.isoformat() if a.authorizedAt else None,
        "closedAt":       a.closedAt.isoformat() if a.closedAt else None,
        "createdAt":      a.createdAt.isoformat() if a.createdAt else None,
    }


def _serialize_trip(t: TripLog) -> dict:
    return {
        "id":             t.id,
        "assignmentId":   t.assignmentId,
        "departureAt":    t.departureAt.isoformat(),
        "returnAt":       t.returnAt.isoformat(),
        "startOdometer":  t.startOdometer,
        "endOdometer":    t.endOdometer,
        "distance":       t.distance,
        "startFuelLevel": t.startFuelLevel,
        "endFuelLevel":   t.endFuelLevel,
        "notes":          t.notes,
    }


def _day_start(d: date | None) -> datetime | None:
    return datetime.combine(d, time.min) if d else None


def _next_day_start(d: date | None) -> datetime | None:
    return datetime.combine(d + timedelta(days=1), time.min) if d else None


class AssignmentService:

    # ─── Reads ────────────────────────────────────────────────────────────────
    def get(self, db: Session, assignment_id: int) -> VehicleAssignment:
        a = db.query(VehicleAssignment).filter(VehicleAssignment.id == assignment_id).first()
        if not a:
            raise NotFoundException("Vehicle assignment")
        return a

    def get_assignment(self, db: Session, assignment_id: int) -> dict:
        return _serialize(self.get(db, assignment_id))

    def list_active(self, db: Session) -> list[dict]:
        rows = db.query(VehicleAssignment)\
                 .filter(VehicleAssignment.status.in_(NON_TERMINAL_STATUSES))\
                 .order_by(VehicleAssignment.startDate).all()
        return [_serialize(a) for a in rows]

    def history(
        self, db: Session, page: int, limit: int,
        start_date: date | None, end_date: date | None,
        vehicle_id: int | None, driver_id: int | None, statuses: list[str] | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            AtLeast(VehicleAssignment.startDate, _day_start(start_date)),
            Before(VehicleAssignment.startDate, _next_day_start(end_date)),
            Equals(VehicleAssignment.vehicleId, vehicle_id),
            Equals(VehicleAssignment.driverId, driver_id),
            OneOf(VehicleAssignment.status, parse_statuses(statuses)),
        )
        q = filters.apply(db.query(VehicleAssignment))
        total = q.count()
        items = q.order_by(VehicleAssignment.startDate.desc())\
                 .offset((page - 1) * limit).limit(limit).all()
        return [_serialize(a) for a in items], total

    def trip_logs(self, db: Session, assignment_id: int) -> list[dict]:
        a = self.get(db, assignment_id)
        return [_serialize_trip(t) for t in sorted(a.trip_logs, key=lambda t: t.returnAt)]

    # ─── Create ───────────────────────────────────────────────────────────────
    def create(self, db: Session, data: AssignmentCreateRequest, actor: User) -> dict:
        with atomic(db):
            vehicle = db.query(Vehicle).filter(Vehicle.id == data.vehicleId).first()
            if not vehicle:
                raise NotFoundException("Vehicle")

            lock_resource(db, vehicle.resourceId)
            db.refresh(vehicle.resource)
            assignment_lifecycle.check_vehicle_available(vehicle)
            if data.startOdometer < vehicle.currentOdometer:
                raise ValidationException(
                    f"Start odometer cannot be below the vehicle's current reading ({vehicle.currentOdometer})",
                    field="startOdometer",
                )

            driver = db.query(Employee).filter(Employee.id == data.driverId).first()
            if not driver:
                raise NotFoundException("Driver")
            if data.requesterId and not db.query(Employee).filter(Employee.id == data.requesterId).first():
                raise NotFoundException("Requester")
            if data.assignmentTypeId and \
                    not db.query(AssignmentType).filter(AssignmentType.id == data.assignmentTypeId).first():
                raise NotFoundException("Assignment type")

            check_assignment_conflicts(db, vehicle, data.startDate, data.endDate)
            assignment_lifecycle.check_driver_license(db, driver.id)

            a = VehicleAssignment(
                vehicleId=vehicle.id,
                driverId=driver.id,
                requesterId=data.requesterId,
                assignmentTypeId=data.assignmentTypeId,
                startDate=data.startDate,
                endDate=data.endDate,
                destination=data.destination,
                purpose=data.purpose,
                startOdometer=data.startOdometer,
                startFuelLevel=data.startFuelLevel,
                notes=data.notes,
                status=BookingStatus.PENDING if data.requiresAuthorization else BookingStatus.ACTIVE,
                createdById=actor.id,
            )
            db.add(a)
            db.flush()
            assignment_lifecycle.enter(db, a, actor)

        db.refresh(a)
        logger.info(f"Assignment #{a.id} created for vehicle {vehicle.plateNumber} as {a.status.value}")
        return _serialize(a)

    # ─── Update ───────────────────────────────────────────────────────────────
    def update(self, db: Session, assignment_id: int, data: AssignmentUpdateRequest, actor: User) -> dict:
        with atomic(db):
            a = self.get(db, assignment_id)
            if a.status not in EDITABLE_STATUSES:
                raise StateException(
                    f"Only PENDING or AUTHORIZED assignments can be edited (current: {a.status.value})",
                    ErrorCode.INVALID_TRANSITION,
                )
            lock_resource(db, a.vehicle.resourceId)
            db.refresh(a.vehicle)

            new_start = data.startDate or a.startDate
            new_end = None if data.clearEndDate else (data.endDate or a.endDate)
            if new_end is not None and new_end <= new_start:
                raise InvalidDateRangeException("endDate must be after startDate")
            if data.startOdometer is not None and data.startOdometer < a.vehicle.currentOdometer:
                raise ValidationException(
                    f"Start odometer cannot be below the vehicle's current reading ({a.vehicle.currentOdometer})",
                    field="startOdometer",
                )
            if (new_start, new_end) != (a.startDate, a.endDate):
                check_assignment_conflicts(db, a.vehicle, new_start, new_end, exclude_id=a.id)

            if data.driverId and data.driverId != a.driverId:
                if not db.query(Employee).filter(Employee.id == data.driverId).first():
                    raise NotFoundException("Driver")
                assignment_lifecycle.check_driver_license(db, data.driverId)
                a.driverId = data.driverId
            if data.requesterId and not db.query(Employee).filter(Employee.id == data.requesterId).first():
                raise NotFoundException("Requester")
            if data.assignmentTypeId and \
                    not db.query(AssignmentType).filter(AssignmentType.id == data.assignmentTypeId).first():
                raise NotFoundException("Assignment type")

            new_purpose = data.purpose if data.purpose is not None else a.purpose
            record_field_changes(db, "VehicleAssignment", a.id, [
                ("startDate", a.startDate, new_start, data.reason),
                ("endDate",   a.endDate,   new_end,   data.reason),
                ("purpose",   a.purpose,   new_purpose, data.reason),
            ], actor.id)

            a.startDate = new_start
            a.endDate = new_end
            a.purpose = new_purpose
            if data.requesterId:                 a.requesterId      = data.requesterId
            if data.assignmentTypeId:            a.assignmentTypeId = data.assignmentTypeId
            if data.destination is not None:     a.destination      = data.destination
            if data.startOdometer is not None:   a.startOdometer    = data.startOdometer
            if data.startFuelLevel is not None:  a.startFuelLevel   = data.startFuelLevel
            if data.notes is not None:           a.notes            = data.notes

            log_action(db, actor.id, "UPDATE", "VehicleAssignment", a.id, f"Assignment #{a.id} updated")

        db.refresh(a)
        return _serialize(a)

    # ─── Transitions ──────────────────────────────────────────────────────────
    def _transition(self, db: Session, assignment_id: int, target: BookingStatus, actor: User, **context):
        with atomic(db):
            a = self.get(db, assignment_id)
            lock_resource(db, a.vehicle.resourceId)
            db.refresh(a.vehicle.resource)
            assignment_lifecycle.transition(db, a, target, actor, **context)
        db.refresh(a)
        return a

    def authorize(self, db: Session, assignment_id: int, actor: User) -> dict:
        return _serialize(self._transition(db, assignment_id, BookingStatus.AUTHORIZED, actor))

    def start(self, db: Session, assignment_id: int, actor: User) -> dict:
        return _serialize(self._transition(db, assignment_id, BookingStatus.ACTIVE, actor))

    def finalize(self, db: Session, assignment_id: int, data: AssignmentFinalizeRequest, actor: User) -> dict:
        a = self._transition(
            db, assignment_id, BookingStatus.FINALIZED, actor,
            end_odometer=data.endOdometer,
            end_fuel_level=data.endFuelLevel,
            notes=data.notes,
            returned_at=data.returnedAt,
        )
        result = _serialize(a)
        result["distance"] = a.endOdometer - a.startOdometer
        return result

    def cancel(self, db: Session, assignment_id: int, reason: str | None, actor: User) -> dict:
        return _serialize(self._transition(db, assignment_id, BookingStatus.CANCELLED, actor, reason=reason))

    # ─── Contract payload ─────────────────────────────────────────────────────
    def contract_payload(self, db: Session, assignment_id: int) -> dict:
        a = self.get(db, assignment_id)
        if a.status not in CONTRACT_STATUSES:
            raise StateException(
                f"A contract is only available for AUTHORIZED or ACTIVE assignments (current: {a.status.value})",
                ErrorCode.INVALID_TRANSITION,
            )
        v = a.vehicle
        lic = current_license(db, a.driverId)
        return {
            "assignmentId": a.id,
            "status":       a.status.value,
            "generatedAt":  datetime.now(timezone.utc).isoformat(),
            "vehicle": {
                "plateNumber":     v.plateNumber,
                "brand":           v.brand,
                "model":           v.model,
                "year":            v.year,
                "color":           v.color,
                "vehicleType":     v.vehicle_type.name if v.vehicle_type else None,
                "currentOdometer": v.currentOdometer,
                "insurancePolicy": v.insurancePolicy,
            },
            "driver": {
                "id":    a.driver.id,
                "name":  a.driver.fullName,
                "phone": a.driver.phone,
                "license": {
                    "licenseNumber": lic.licenseNumber,
                    "licenseType":   lic.licenseType,
                    "expiryDate":    lic.expiryDate.isoformat(),
                } if lic else None,
            },
            "requester":      _person(a.requester),
            "assignmentType": a.assignment_type.name if a.assignment_type else None,
            "startDate":      a.startDate.isoformat(),
            "endDate":        a.endDate.isoformat() if a.endDate else None,
            "destination":    a.destination,
            "purpose":        a.purpose,
            "startOdometer":  a.startOdometer,
            "startFuelLevel": a.startFuelLevel,
        }

    # ─── Statistics ───────────────────────────────────────────────────────────
    def statistics(self, db: Session, month: int | None, year: int | None) -> dict:
        period = QueryFilter(
            ExtractEquals(VehicleAssignment.startDate, month, part="month"),
            ExtractEquals(VehicleAssignment.startDate, year, part="year"),
        )
        base = period.apply(db.query(VehicleAssignment))
        ids = [row.id for row in period.apply(db.query(VehicleAssignment.id)).all()]

        by_status = {s.value: 0 for s in BookingStatus}
        for status, count in period.apply(
            db.query(VehicleAssignment.status, func.count(VehicleAssignment.id))
        ).group_by(VehicleAssignment.status).all():
            by_status[status.value] = count

        total_km = 0
        fuel_cost = 0.0
        if ids:
            total_km = db.query(func.coalesce(func.sum(TripLog.distance), 0))\
                         .filter(TripLog.assignmentId.in_(ids)).scalar() or 0
            fuel_cost = db.query(func.coalesce(func.sum(FuelLoad.totalCost), 0))\
                          .filter(FuelLoad.assignmentId.in_(ids)).scalar() or 0

        top = period.apply(
            db.query(Vehicle.id, Vehicle.plateNumber, func.count(VehicleAssignment.id).label("uses"))
              .join(VehicleAssignment, VehicleAssignment.vehicleId == Vehicle.id)
        ).group_by(Vehicle.id, Vehicle.plateNumber)\
         .order_by(func.count(VehicleAssignment.id).desc()).limit(5).all()

        return {
            "period":           {"month": month, "year": year},
            "totalAssignments": base.count(),
            "byStatus":         by_status,
            "totalKilometers":  int(total_km),
            "fuelCost":         float(fuel_cost),
            "topVehicles":      [{"vehicleId": vid, "plateNumber": plate, "assignments": uses}
                                 for vid, plate, uses in top],
        }


assignment_service = AssignmentService()
