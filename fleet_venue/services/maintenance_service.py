from datetime import datetime, timezone

from sqlalchemy.orm import Session

from fleet_venue.models.booking import BookingStatus
from fleet_venue.models.catalog import MaintenanceType
from fleet_venue.models.maintenance_record import MaintenanceRecord
from fleet_venue.models.resource import ResourceStatus
from fleet_venue.models.user import User
from fleet_venue.models.vehicle import Vehicle
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.schemas.maintenance import MaintenanceCreateRequest, MaintenanceCompleteRequest
from fleet_venue.services.lifecycle import append_note
from fleet_venue.services.query_builder import QueryFilter, Equals
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import NotFoundException, ResourceInUseException, StateException, ErrorCode
from fleet_venue.utils.transaction import atomic


def serialize_maintenance(m: MaintenanceRecord) -> dict:
    return {
        "id": m.id,
        "vehicle": {
            "id":          m.vehicle.id,
            "plateNumber": m.vehicle.plateNumber,
            "status":      m.vehicle.resource.status.value,
        },
        "maintenanceType": {
            "id":           m.maintenance_type.id,
            "name":         m.maintenance_type.name,
            "isCorrective": m.maintenance_type.isCorrective,
        },
        "description": m.description,
        "serviceDate": m.serviceDate.isoformat(),
        "odometer":    m.odometer,
        "cost":        float(m.cost) if m.cost is not None else None,
        "provider":    m.provider,
        "notes":       m.notes,
        "isOngoing":   m.completedAt is None,
        "completedAt": m.completedAt.isoformat() if m.completedAt else None,
    }


class MaintenanceService:

    def list_records(
        self, db: Session, page: int, limit: int,
        vehicle_id: int | None, maintenance_type_id: int | None, ongoing: bool | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            Equals(MaintenanceRecord.vehicleId, vehicle_id),
            Equals(MaintenanceRecord.maintenanceTypeId, maintenance_type_id),
        )
        q = filters.apply(db.query(MaintenanceRecord))
        if ongoing is True:  q = q.filter(MaintenanceRecord.completedAt == None)
        if ongoing is False: q = q.filter(MaintenanceRecord.completedAt != None)

        total = q.count()
        items = q.order_by(MaintenanceRecord.serviceDate.desc()).offset((page - 1) * limit).limit(limit).all()
        return [serialize_maintenance(m) for m in items], total

    def get_record(self, db: Session, record_id: int) -> dict:
        m = db.query(MaintenanceRecord).filter(MaintenanceRecord.id == record_id).first()
        if not m: raise NotFoundException("Maintenance record")
        return serialize_maintenance(m)

    def create_record(self, db: Session, data: MaintenanceCreateRequest, actor: User) -> dict:
        with atomic(db):
            vehicle = db.query(Vehicle).filter(Vehicle.id == data.vehicleId).first()
            if not vehicle: raise NotFoundException("Vehicle")
            mtype = db.query(MaintenanceType).filter(MaintenanceType.id == data.maintenanceTypeId).first()
            if not mtype: raise NotFoundException("Maintenance type")

            if mtype.isCorrective:
                active = db.query(VehicleAssignment).filter(
                    VehicleAssignment.vehicleId == vehicle.id,
                    VehicleAssignment.status == BookingStatus.ACTIVE,
                ).first()
                if active:
                    raise ResourceInUseException(
                        f"Vehicle is out on assignment #{active.id}; finalize it before corrective maintenance"
                    )
                # Corrective work takes the vehicle out of service until completed
                vehicle.resource.status = ResourceStatus.MAINTENANCE

            record = MaintenanceRecord(
                vehicleId=vehicle.id,
                maintenanceTypeId=mtype.id,
                description=data.description,
                serviceDate=data.serviceDate,
                odometer=data.odometer,
                cost=data.cost,
                provider=data.provider,
                notes=data.notes,
                createdById=actor.id,
                # Preventive records are logged after the fact
                completedAt=None if mtype.isCorrective else datetime.now(timezone.utc),
            )
            db.add(record)
            if data.odometer and data.odometer > vehicle.currentOdometer:
                vehicle.currentOdometer = data.odometer
            db.flush()
            log_action(db, actor.id, "CREATE", "MaintenanceRecord", record.id,
                       f"{mtype.name} maintenance registered for {vehicle.plateNumber}")
        db.refresh(record)
        return serialize_maintenance(record)

    def complete_record(self, db: Session, record_id: int, data: MaintenanceCompleteRequest, actor: User) -> dict:
        m = db.query(MaintenanceRecord).filter(MaintenanceRecord.id == record_id).first()
        if not m: raise NotFoundException("Maintenance record")
        if m.completedAt is not None:
            raise StateException("Maintenance record is already completed", ErrorCode.INVALID_TRANSITION)

        m.completedAt = datetime.now(timezone.utc)
        if data.cost is not None: m.cost = data.cost
        if data.notes: m.notes = append_note(m.notes, data.notes)
        if m.vehicle.resource.status == ResourceStatus.MAINTENANCE:
            m.vehicle.resource.status = ResourceStatus.AVAILABLE
        log_action(db, actor.id, "COMPLETE", "MaintenanceRecord", m.id,
                   f"Maintenance completed for {m.vehicle.plateNumber}; status restored to AVAILABLE")
        db.commit()
        db.refresh(m)
        return serialize_maintenance(m)


maintenance_service = MaintenanceService()
