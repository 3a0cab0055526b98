import logging

from sqlalchemy.orm import Session

from fleet_venue.models.booking import BookingStatus, NON_TERMINAL_STATUSES
from fleet_venue.models.catalog import VehicleType
from fleet_venue.models.fuel_load import FuelLoad
from fleet_venue.models.maintenance_record import MaintenanceRecord
from fleet_venue.models.resource import Resource, ResourceType, ResourceStatus
from fleet_venue.models.user import User
from fleet_venue.models.vehicle import Vehicle
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.schemas.vehicle import (
    VehicleCreateRequest, VehicleUpdateRequest, VehicleStatusRequest,
)
from fleet_venue.services.conflict_checker import lock_resource
from fleet_venue.services.fuel_service import serialize_fuel_load
from fleet_venue.services.lifecycle import append_note
from fleet_venue.services.maintenance_service import serialize_maintenance
from fleet_venue.services.query_builder import QueryFilter, Equals, Contains
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ResourceInUseException,
)
from fleet_venue.utils.transaction import atomic

logger = logging.getLogger(__name__)

HOLDING_STATUSES = (BookingStatus.AUTHORIZED, BookingStatus.ACTIVE)


def _serialize(v: Vehicle) -> dict:
    return {
        "id": v.id,
        "resource": {
            "id":     v.resource.id,
            "name":   v.resource.name,
            "status": v.resource.status.value,
        },
        "plateNumber":        v.plateNumber,
        "brand":              v.brand,
        "model":              v.model,
        "year":               v.year,
        "color":              v.color,
        "chassisNumber":      v.chassisNumber,
        "engineNumber":       v.engineNumber,
        "vehicleType":        {"id": v.vehicle_type.id, "name": v.vehicle_type.name} if v.vehicle_type else None,
        "registrationCard":   v.registrationCard,
        "registrationExpiry": v.registrationExpiry.isoformat() if v.registrationExpiry else None,
        "insurancePolicy":    v.insurancePolicy,
        "insuranceExpiry":    v.insuranceExpiry.isoformat() if v.insuranceExpiry else None,
        "currentOdometer":    v.currentOdometer,
        "notes":              v.notes,
    }


class VehicleService:

    def list_vehicles(
        self, db: Session, page: int, limit: int,
        search: str | None, vehicle_type_id: int | None, status: str | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            Contains([Vehicle.plateNumber, Vehicle.brand, Vehicle.model, Resource.name], search),
            Equals(Vehicle.vehicleTypeId, vehicle_type_id),
            Equals(Resource.status, status),
        )
        q = filters.apply(db.query(Vehicle).join(Vehicle.resource))
        total = q.count()
        items = q.order_by(Resource.name).offset((page - 1) * limit).limit(limit).all()
        return [_serialize(v) for v in items], total

    def get(self, db: Session, vehicle_id: int) -> Vehicle:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")
        return v

    def get_vehicle(self, db: Session, vehicle_id: int) -> dict:
        return _serialize(self.get(db, vehicle_id))

    def create_vehicle(self, db: Session, data: VehicleCreateRequest, actor: User) -> dict:
        if data.vehicleTypeId and not db.query(VehicleType).filter(VehicleType.id == data.vehicleTypeId).first():
            raise NotFoundException("Vehicle type")
        if db.query(Vehicle).filter(Vehicle.plateNumber == data.plateNumber).first():
            raise DuplicateEntryException("Plate number already registered", field="plateNumber")

        name = (data.name or "").strip() or f"{data.brand} {data.model} ({data.plateNumber})"
        resource = Resource(name=name, type=ResourceType.VEHICLE, status=ResourceStatus.AVAILABLE)
        db.add(resource)
        db.flush()

        vehicle = Vehicle(resourceId=resource.id, **data.model_dump(exclude={"name"}))
        db.add(vehicle)
        db.flush()
        log_action(db, actor.id, "CREATE", "Vehicle", vehicle.id,
                   f"Created vehicle {data.plateNumber} ({data.brand} {data.model})")
        db.commit()
        db.refresh(vehicle)
        return _serialize(vehicle)

    def update_vehicle(self, db: Session, vehicle_id: int, data: VehicleUpdateRequest, actor: User) -> dict:
        v = self.get(db, vehicle_id)

        if data.plateNumber and data.plateNumber != v.plateNumber:
            if db.query(Vehicle).filter(Vehicle.plateNumber == data.plateNumber, Vehicle.id != vehicle_id).first():
                raise DuplicateEntryException("Plate number already used", field="plateNumber")
        if data.vehicleTypeId and not db.query(VehicleType).filter(VehicleType.id == data.vehicleTypeId).first():
            raise NotFoundException("Vehicle type")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        name = changes.pop("name", None)
        if name and name.strip(): v.resource.name = name.strip()
        for field, value in changes.items():
            setattr(v, field, value)

        log_action(db, actor.id, "UPDATE", "Vehicle", v.id, f"Updated vehicle {v.plateNumber}")
        db.commit()
        db.refresh(v)
        return _serialize(v)

    def _open_assignment(self, db: Session, vehicle_id: int, statuses=NON_TERMINAL_STATUSES):
        return db.query(VehicleAssignment).filter(
            VehicleAssignment.vehicleId == vehicle_id,
            VehicleAssignment.status.in_(statuses),
        ).order_by(VehicleAssignment.startDate).first()

    def update_status(self, db: Session, vehicle_id: int, data: VehicleStatusRequest, actor: User) -> dict:
        with atomic(db):
            v = self.get(db, vehicle_id)
            lock_resource(db, v.resourceId)
            db.refresh(v.resource)

            # IN_USE is owned by the assignment lifecycle while an assignment holds the vehicle
            holder = self._open_assignment(db, v.id, HOLDING_STATUSES)
            if holder and v.resource.status == ResourceStatus.IN_USE and data.status != ResourceStatus.IN_USE:
                raise ResourceInUseException(
                    f"Vehicle is held by assignment #{holder.id} ({holder.status.value}); "
                    "finalize or cancel it first"
                )
            if data.status == ResourceStatus.INACTIVE:
                pending = self._open_assignment(db, v.id)
                if pending:
                    raise ResourceInUseException(
                        f"Vehicle has an open assignment (#{pending.id}); finalize or cancel it first"
                    )

            old_status = v.resource.status.value
            v.resource.status = data.status
            log_action(db, actor.id, "UPDATE", "Vehicle", v.id,
                       f"Status changed {old_status} -> {data.status.value}" +
                       (f" | Reason: {data.reason}" if data.reason else ""))
        db.refresh(v)
        return _serialize(v)

    def delete_vehicle(self, db: Session, vehicle_id: int, reason: str | None, actor: User) -> dict:
        """Soft delete: the vehicle becomes INACTIVE and keeps its history."""
        v = self.get(db, vehicle_id)
        open_assignment = self._open_assignment(db, vehicle_id)
        if open_assignment:
            raise ResourceInUseException(
                f"Vehicle has an open assignment (#{open_assignment.id}); finalize or cancel it first"
            )

        v.resource.status = ResourceStatus.INACTIVE
        v.notes = append_note(v.notes, f"Deleted by {actor.name}. Reason: {reason or 'not given'}")
        log_action(db, actor.id, "DELETE", "Vehicle", vehicle_id, f"Deactivated vehicle {v.plateNumber}")
        db.commit()
        logger.info(f"Vehicle {v.plateNumber} deactivated by user {actor.id}")
        return _serialize(v)

    # ─── History ──────────────────────────────────────────────────────────────
    def fuel_loads(self, db: Session, vehicle_id: int) -> list[dict]:
        self.get(db, vehicle_id)
        rows = db.query(FuelLoad).filter(FuelLoad.vehicleId == vehicle_id)\
                 .order_by(FuelLoad.loadedAt.desc()).all()
        return [serialize_fuel_load(f) for f in rows]

    def maintenance(self, db: Session, vehicle_id: int) -> list[dict]:
        self.get(db, vehicle_id)
        rows = db.query(MaintenanceRecord).filter(MaintenanceRecord.vehicleId == vehicle_id)\
                 .order_by(MaintenanceRecord.serviceDate.desc()).all()
        return [serialize_maintenance(m) for m in rows]


vehicle_service = VehicleService()
