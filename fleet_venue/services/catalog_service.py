"""
Generic service over the name/description lookup tables.

Every catalog shares the same rules: names are unique (409 on duplicates)
and a row still referenced elsewhere cannot be deleted (409).
"""
from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet_venue.models.catalog import (
    VehicleType, AssignmentType, MaintenanceType,
    Service, Equipment, Tasting, LayoutType, CostType, PaymentType,
)
from fleet_venue.models.maintenance_record import MaintenanceRecord
from fleet_venue.models.module import ModuleCode
from fleet_venue.models.payment import Payment
from fleet_venue.models.reservation import (
    RoomReservation, ServiceSelection, EquipmentSelection, TastingSelection,
)
from fleet_venue.models.room_config import (
    RoomCapacity, RoomCost, RoomOfferedService, RoomOfferedEquipment, RoomOfferedTasting,
)
from fleet_venue.models.user import User
from fleet_venue.models.vehicle import Vehicle
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.schemas.catalog import CatalogItemRequest, CatalogItemUpdateRequest
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ResourceInUseException,
)


class CatalogService:

    def __init__(self, model, label: str, module: str, references: list = ()):
        self.model = model
        self.label = label
        self.module = module
        self.references = list(references)   # columns holding a FK to this catalog

    def serialize(self, item) -> dict:
        data = {"id": item.id, "name": item.name, "description": item.description}
        if hasattr(item, "isCorrective"):
            data["isCorrective"] = item.isCorrective
        return data

    def list_items(self, db: Session, search: str | None = None) -> list[dict]:
        q = db.query(self.model)
        if search: q = q.filter(self.model.name.ilike(f"%{search.strip()}%"))
        return [self.serialize(i) for i in q.order_by(self.model.name).all()]

    def get(self, db: Session, item_id: int):
        item = db.query(self.model).filter(self.model.id == item_id).first()
        if not item:
            raise NotFoundException(self.label)
        return item

    def exists(self, db: Session, item_id: int) -> bool:
        return db.query(self.model.id).filter(self.model.id == item_id).first() is not None

    def _check_name(self, db: Session, name: str, exclude_id: int | None = None):
        q = db.query(self.model).filter(func.lower(self.model.name) == name.lower())
        if exclude_id: q = q.filter(self.model.id != exclude_id)
        if q.first():
            raise DuplicateEntryException(f"{self.label} '{name}' already exists", field="name")

    def create(self, db: Session, data: CatalogItemRequest, actor: User) -> dict:
        self._check_name(db, data.name)
        item = self.model(name=data.name, description=data.description)
        if hasattr(item, "isCorrective"):
            item.isCorrective = bool(data.isCorrective)
        db.add(item)
        db.flush()
        log_action(db, actor.id, "CREATE", self.model.__name__, item.id, f"Created {self.label} {item.name}")
        db.commit()
        db.refresh(item)
        return self.serialize(item)

    def update(self, db: Session, item_id: int, data: CatalogItemUpdateRequest, actor: User) -> dict:
        item = self.get(db, item_id)
        if data.name and data.name.lower() != item.name.lower():
            self._check_name(db, data.name, exclude_id=item.id)
        if data.name:                    item.name        = data.name
        if data.description is not None: item.description = data.description
        if data.isCorrective is not None and hasattr(item, "isCorrective"):
            item.isCorrective = data.isCorrective
        log_action(db, actor.id, "UPDATE", self.model.__name__, item.id, f"Updated {self.label} {item.name}")
        db.commit()
        db.refresh(item)
        return self.serialize(item)

    def delete(self, db: Session, item_id: int, actor: User) -> None:
        item = self.get(db, item_id)
        for column in self.references:
            if db.query(column).filter(column == item_id).first() is not None:
                raise ResourceInUseException(f"{self.label} '{item.name}' is in use and cannot be deleted")
        log_action(db, actor.id, "DELETE", self.model.__name__, item.id, f"Deleted {self.label} {item.name}")
        db.delete(item)
        db.commit()


# ─── Registry (URL slug -> service) ───────────────────────────────────────────
CATALOGS: dict[str, CatalogService] = {
    "vehicle-types": CatalogService(
        VehicleType, "Vehicle type", ModuleCode.FLEET, [Vehicle.vehicleTypeId]),
    "assignment-types": CatalogService(
        AssignmentType, "Assignment type", ModuleCode.FLEET, [VehicleAssignment.assignmentTypeId]),
    "maintenance-types": CatalogService(
        MaintenanceType, "Maintenance type", ModuleCode.FLEET, [MaintenanceRecord.maintenanceTypeId]),
    "services": CatalogService(
        Service, "Service", ModuleCode.ROOMS, [RoomOfferedService.serviceId, ServiceSelection.serviceId]),
    "equipment": CatalogService(
        Equipment, "Equipment", ModuleCode.ROOMS, [RoomOfferedEquipment.equipmentId, EquipmentSelection.equipmentId]),
    "tastings": CatalogService(
        Tasting, "Tasting", ModuleCode.ROOMS, [RoomOfferedTasting.tastingId, TastingSelection.tastingId]),
    "layout-types": CatalogService(
        LayoutType, "Layout type", ModuleCode.ROOMS, [RoomCapacity.layoutTypeId, RoomReservation.layoutTypeId]),
    "cost-types": CatalogService(
        CostType, "Cost type", ModuleCode.ROOMS, [RoomCost.costTypeId]),
    "payment-types": CatalogService(
        PaymentType, "Payment type", ModuleCode.RESERVATIONS, [Payment.paymentTypeId]),
}


def get_catalog(slug: str) -> CatalogService:
    service = CATALOGS.get(slug)
    if not service:
        raise NotFoundException(f"Catalog '{slug}'")
    return service
