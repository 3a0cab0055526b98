import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from fleet_venue.config import settings
from fleet_venue.models.booking import NON_TERMINAL_STATUSES
from fleet_venue.models.catalog import CostType, LayoutType, Service, Equipment, Tasting
from fleet_venue.models.reservation import RoomReservation
from fleet_venue.models.resource import Resource, ResourceType, ResourceStatus
from fleet_venue.models.room import Room
from fleet_venue.models.room_config import (
    RoomCapacity, RoomCost, RoomOfferedService, RoomOfferedEquipment, RoomOfferedTasting,
)
from fleet_venue.models.user import User
from fleet_venue.schemas.room import (
    RoomCreateRequest, RoomUpdateRequest, RoomCapacityRequest,
    RoomCostRequest, RoomCostUpdateRequest, OfferedItemRequest,
)
from fleet_venue.services.lifecycle import append_note
from fleet_venue.services.query_builder import QueryFilter, Equals, Contains
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ResourceInUseException,
)

logger = logging.getLogger(__name__)


def _num(v) -> float | None:
    return float(v) if v is not None else None


def _serialize(r: Room, detail: bool = False) -> dict:
    data = {
        "id":       r.id,
        "name":     r.resource.name,
        "status":   r.resource.status.value,
        "length":   _num(r.length),
        "width":    _num(r.width),
        "hasStage": r.hasStage,
        "stage":    {"length": _num(r.stageLength), "width": _num(r.stageWidth)} if r.hasStage else None,
        "note":     r.note,
    }
    if detail:
        data["capacities"] = [_serialize_capacity(c) for c in r.capacities]
        data["costs"]      = [_serialize_cost(c) for c in r.costs]
        data["services"]   = [_serialize_offered(o, o.service, "serviceId") for o in r.offered_services]
        data["equipment"]  = [_serialize_offered(o, o.equipment, "equipmentId") for o in r.offered_equipment]
        data["tastings"]   = [_serialize_offered(o, o.tasting, "tastingId") for o in r.offered_tastings]
    return data


def _serialize_capacity(c: RoomCapacity) -> dict:
    return {"id": c.id, "layoutTypeId": c.layoutTypeId, "layoutType": c.layout_type.name, "people": c.people}


def _serialize_cost(c: RoomCost) -> dict:
    return {"id": c.id, "costTypeId": c.costTypeId, "costType": c.cost_type.name, "amount": float(c.amount)}


def _serialize_offered(o, item, key: str) -> dict:
    return {"id": o.id, key: item.id, "name": item.name, "note": o.note}


# kind -> (link model, link column, catalog model, relationship on Room, item attribute, label)
OFFERED_KINDS = {
    "services":  (RoomOfferedService,   "serviceId",   Service,   "offered_services",  "service",   "Service"),
    "equipment": (RoomOfferedEquipment, "equipmentId", Equipment, "offered_equipment", "equipment", "Equipment"),
    "tastings":  (RoomOfferedTasting,   "tastingId",   Tasting,   "offered_tastings",  "tasting",   "Tasting"),
}


class RoomService:

    # ─── Rooms ────────────────────────────────────────────────────────────────
    def list_rooms(
        self, db: Session, page: int, limit: int, search: str | None, status: str | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            Contains(Resource.name, search),
            Equals(Resource.status, status),
        )
        q = filters.apply(db.query(Room).join(Room.resource))
        total = q.count()
        items = q.order_by(Resource.name).offset((page - 1) * limit).limit(limit).all()
        return [_serialize(r) for r in items], total

    def get(self, db: Session, room_id: int) -> Room:
        r = db.query(Room).filter(Room.id == room_id).first()
        if not r:
            raise NotFoundException("Room")
        return r

    def get_room(self, db: Session, room_id: int) -> dict:
        return _serialize(self.get(db, room_id), detail=True)

    def _check_name(self, db: Session, name: str, exclude_resource_id: int | None = None):
        q = db.query(Resource).filter(Resource.type == ResourceType.ROOM, Resource.name == name)
        if exclude_resource_id: q = q.filter(Resource.id != exclude_resource_id)
        if q.first():
            raise DuplicateEntryException(f"Room '{name}' already exists", field="name")

    def create_room(self, db: Session, data: RoomCreateRequest, actor: User) -> dict:
        self._check_name(db, data.name)
        resource = Resource(name=data.name, type=ResourceType.ROOM, status=ResourceStatus.AVAILABLE)
        db.add(resource)
        db.flush()

        room = Room(resourceId=resource.id, **data.model_dump(exclude={"name"}))
        db.add(room)
        db.flush()
        log_action(db, actor.id, "CREATE", "Room", room.id, f"Created room {data.name}")
        db.commit()
        db.refresh(room)
        return _serialize(room, detail=True)

    def update_room(self, db: Session, room_id: int, data: RoomUpdateRequest, actor: User) -> dict:
        r = self.get(db, room_id)
        if data.name and data.name.strip() != r.resource.name:
            self._check_name(db, data.name.strip(), exclude_resource_id=r.resourceId)
            r.resource.name = data.name.strip()

        if data.length is not None: r.length = data.length
        if data.width is not None:  r.width  = data.width
        if data.note is not None:   r.note   = data.note
        if data.removeStage:
            r.stageLength = None
            r.stageWidth = None
        else:
            if data.stageLength is not None: r.stageLength = data.stageLength
            if data.stageWidth is not None:  r.stageWidth  = data.stageWidth

        log_action(db, actor.id, "UPDATE", "Room", r.id, f"Updated room {r.resource.name}")
        db.commit()
        db.refresh(r)
        return _serialize(r, detail=True)

    def delete_room(self, db: Session, room_id: int, reason: str | None, actor: User) -> dict:
        """Soft delete: the room becomes INACTIVE and keeps its reservations."""
        r = self.get(db, room_id)
        open_reservation = db.query(RoomReservation).filter(
            RoomReservation.roomId == room_id,
            RoomReservation.status.in_(NON_TERMINAL_STATUSES),
        ).first()
        if open_reservation:
            raise ResourceInUseException(
                f"Room has an open reservation (#{open_reservation.id}); finalize or cancel it first"
            )

        r.resource.status = ResourceStatus.INACTIVE
        r.note = append_note(r.note, f"Deleted by {actor.name}. Reason: {reason or 'not given'}")
        log_action(db, actor.id, "DELETE", "Room", room_id, f"Deactivated room {r.resource.name}")
        db.commit()
        logger.info(f"Room {r.resource.name} deactivated by user {actor.id}")
        return _serialize(r)

    # ─── Capacities ───────────────────────────────────────────────────────────
    def list_capacities(self, db: Session, room_id: int) -> list[dict]:
        return [_serialize_capacity(c) for c in self.get(db, room_id).capacities]

    def set_capacity(self, db: Session, room_id: int, data: RoomCapacityRequest, actor: User) -> dict:
        """Insert or replace the capacity of one layout."""
        r = self.get(db, room_id)
        if not db.query(LayoutType).filter(LayoutType.id == data.layoutTypeId).first():
            raise NotFoundException("Layout type")

        cap = db.query(RoomCapacity).filter(
            RoomCapacity.roomId == r.id, RoomCapacity.layoutTypeId == data.layoutTypeId,
        ).first()
        if cap:
            cap.people = data.people
        else:
            cap = RoomCapacity(roomId=r.id, layoutTypeId=data.layoutTypeId, people=data.people)
            db.add(cap)
        db.flush()
        log_action(db, actor.id, "UPDATE", "Room", r.id,
                   f"Capacity for layout #{data.layoutTypeId} set to {data.people}")
        db.commit()
        db.refresh(cap)
        return _serialize_capacity(cap)

    def delete_capacity(self, db: Session, room_id: int, capacity_id: int, actor: User) -> None:
        cap = db.query(RoomCapacity).filter(
            RoomCapacity.id == capacity_id, RoomCapacity.roomId == room_id,
        ).first()
        if not cap:
            raise NotFoundException("Room capacity")
        log_action(db, actor.id, "DELETE", "Room", room_id, f"Removed capacity #{capacity_id}")
        db.delete(cap)
        db.commit()

    # ─── Costs ────────────────────────────────────────────────────────────────
    def list_costs(self, db: Session, room_id: int) -> list[dict]:
        return [_serialize_cost(c) for c in self.get(db, room_id).costs]

    def add_cost(self, db: Session, room_id: int, data: RoomCostRequest, actor: User) -> dict:
        r = self.get(db, room_id)
        if not db.query(CostType).filter(CostType.id == data.costTypeId).first():
            raise NotFoundException("Cost type")
        if db.query(RoomCost).filter(RoomCost.roomId == r.id, RoomCost.costTypeId == data.costTypeId).first():
            raise DuplicateEntryException("This room already has a cost of that type", field="costTypeId")

        cost = RoomCost(roomId=r.id, costTypeId=data.costTypeId, amount=data.amount)
        db.add(cost)
        db.flush()
        log_action(db, actor.id, "CREATE", "RoomCost", cost.id, f"Cost {data.amount} added to room #{r.id}")
        db.commit()
        db.refresh(cost)
        return _serialize_cost(cost)

    def update_cost(self, db: Session, room_id: int, cost_id: int, data: RoomCostUpdateRequest, actor: User) -> dict:
        cost = self._get_cost(db, room_id, cost_id)
        old = cost.amount
        cost.amount = data.amount
        log_action(db, actor.id, "UPDATE", "RoomCost", cost.id, f"Amount {old} -> {data.amount}")
        db.commit()
        db.refresh(cost)
        return _serialize_cost(cost)

    def delete_cost(self, db: Session, room_id: int, cost_id: int, actor: User) -> None:
        cost = self._get_cost(db, room_id, cost_id)
        log_action(db, actor.id, "DELETE", "RoomCost", cost.id, f"Removed cost #{cost.id} from room #{room_id}")
        db.delete(cost)
        db.commit()

    def _get_cost(self, db: Session, room_id: int, cost_id: int) -> RoomCost:
        cost = db.query(RoomCost).filter(RoomCost.id == cost_id, RoomCost.roomId == room_id).first()
        if not cost:
            raise NotFoundException("Room cost")
        return cost

    def cost_summary(self, db: Session, room_id: int) -> dict:
        """Base price and refundable deposit; 404 when neither is configured."""
        r = self.get(db, room_id)
        amounts = {c.costTypeId: c.amount for c in r.costs}
        base = amounts.get(settings.BASE_PRICE_COST_TYPE_ID, Decimal("0"))
        deposit = amounts.get(settings.DEPOSIT_COST_TYPE_ID, Decimal("0"))
        if not base and not deposit:
            raise NotFoundException("Room cost summary")
        return {
            "roomId":    r.id,
            "roomName":  r.resource.name,
            "basePrice": float(base),
            "deposit":   float(deposit),
            "total":     float(base + deposit),
        }

    # ─── Offered services / equipment / tastings ──────────────────────────────
    def list_offered(self, db: Session, room_id: int, kind: str) -> list[dict]:
        _, key, _, rel, attr, _ = OFFERED_KINDS[kind]
        r = self.get(db, room_id)
        return [_serialize_offered(o, getattr(o, attr), key)
                for o in getattr(r, rel)]

    def add_offered(self, db: Session, room_id: int, kind: str, data: OfferedItemRequest, actor: User) -> dict:
        link_model, key, catalog_model, _, _, label = OFFERED_KINDS[kind]
        r = self.get(db, room_id)
        item = db.query(catalog_model).filter(catalog_model.id == data.itemId).first()
        if not item:
            raise NotFoundException(label)
        column = getattr(link_model, key)
        if db.query(link_model).filter(link_model.roomId == r.id, column == data.itemId).first():
            raise DuplicateEntryException(f"{label} '{item.name}' is already offered by this room", field="itemId")

        link = link_model(roomId=r.id, note=data.note, **{key: data.itemId})
        db.add(link)
        db.flush()
        log_action(db, actor.id, "CREATE", link_model.__name__, link.id,
                   f"{label} '{item.name}' offered in room #{r.id}")
        db.commit()
        return _serialize_offered(link, item, key)

    def remove_offered(self, db: Session, room_id: int, kind: str, link_id: int, actor: User) -> None:
        link_model, _, _, _, _, label = OFFERED_KINDS[kind]
        link = db.query(link_model).filter(link_model.id == link_id, link_model.roomId == room_id).first()
        if not link:
            raise NotFoundException(f"Offered {label.lower()}")
        log_action(db, actor.id, "DELETE", link_model.__name__, link.id, f"{label} removed from room #{room_id}")
        db.delete(link)
        db.commit()


room_service = RoomService()
