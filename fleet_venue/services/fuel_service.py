import logging
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from fleet_venue.models.fuel_load import FuelLoad
from fleet_venue.models.resource import ResourceStatus
from fleet_venue.models.user import User
from fleet_venue.models.vehicle import Vehicle
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.schemas.fuel_load import FuelLoadCreateRequest
from fleet_venue.services.lifecycle import utcnow_naive
from fleet_venue.services.query_builder import QueryFilter, Equals, AtLeast, Before
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import NotFoundException, ValidationException, ResourceUnavailableException
from fleet_venue.utils.transaction import atomic

logger = logging.getLogger(__name__)


def serialize_fuel_load(f: FuelLoad) -> dict:
    return {
        "id":            f.id,
        "vehicle": {
            "id":          f.vehicle.id,
            "plateNumber": f.vehicle.plateNumber,
        },
        "assignmentId":  f.assignmentId,
        "loadedAt":      f.loadedAt.isoformat(),
        "liters":        float(f.liters),
        "totalCost":     float(f.totalCost),
        "odometer":      f.odometer,
        "station":       f.station,
        "invoiceNumber": f.invoiceNumber,
        "notes":         f.notes,
    }


class FuelService:

    def list_loads(
        self, db: Session, page: int, limit: int,
        vehicle_id: int | None, assignment_id: int | None,
        start_date: date | None, end_date: date | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            Equals(FuelLoad.vehicleId, vehicle_id),
            Equals(FuelLoad.assignmentId, assignment_id),
            AtLeast(FuelLoad.loadedAt, datetime.combine(start_date, time.min) if start_date else None),
            Before(FuelLoad.loadedAt, datetime.combine(end_date + timedelta(days=1), time.min) if end_date else None),
        )
        q = filters.apply(db.query(FuelLoad))
        total = q.count()
        items = q.order_by(FuelLoad.loadedAt.desc()).offset((page - 1) * limit).limit(limit).all()
        return [serialize_fuel_load(f) for f in items], total

    def create_load(self, db: Session, data: FuelLoadCreateRequest, actor: User) -> dict:
        with atomic(db):
            vehicle = db.query(Vehicle).filter(Vehicle.id == data.vehicleId).first()
            if not vehicle:
                raise NotFoundException("Vehicle")
            if vehicle.resource.status == ResourceStatus.INACTIVE:
                raise ResourceUnavailableException("Vehicle is inactive")
            if data.assignmentId:
                assignment = db.query(VehicleAssignment).filter(VehicleAssignment.id == data.assignmentId).first()
                if not assignment:
                    raise NotFoundException("Vehicle assignment")
                if assignment.vehicleId != vehicle.id:
                    raise ValidationException("Assignment belongs to a different vehicle", field="assignmentId")

            load = FuelLoad(
                vehicleId=vehicle.id,
                assignmentId=data.assignmentId,
                loadedAt=data.loadedAt or utcnow_naive(),
                liters=data.liters,
                totalCost=data.totalCost,
                odometer=data.odometer,
                station=data.station,
                invoiceNumber=data.invoiceNumber,
                notes=data.notes,
                createdById=actor.id,
            )
            db.add(load)
            # Odometer only moves forward
            if data.odometer > vehicle.currentOdometer:
                vehicle.currentOdometer = data.odometer
            db.flush()
            log_action(db, actor.id, "CREATE", "FuelLoad", load.id,
                       f"Fuel load {data.liters} L for {vehicle.plateNumber}")

        db.refresh(load)
        logger.info(f"Fuel load #{load.id} recorded for vehicle {vehicle.plateNumber}")
        return serialize_fuel_load(load)


fuel_service = FuelService()
