from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import Literal, Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import rooms_user
from fleet_venue.models.user import User
from fleet_venue.schemas.room import (
    RoomCreateRequest, RoomUpdateRequest, RoomCapacityRequest,
    RoomCostRequest, RoomCostUpdateRequest, OfferedItemRequest,
)
from fleet_venue.schemas.common import success_response, paginated_response
from fleet_venue.services.room_service import room_service

router = APIRouter(prefix="/rooms")

OfferedKind = Literal["services", "equipment", "tastings"]


# ─── Rooms ────────────────────────────────────────────────────────────────────
@router.get("", summary="List rooms (paginated)")
def list_rooms(
    page:   int           = Query(1, ge=1),
    limit:  int           = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="AVAILABLE | INACTIVE"),
    db:     Session       = Depends(get_db),
    _:      User          = Depends(rooms_user),
):
    data, total = room_service.list_rooms(db, page, limit, search, status)
    return paginated_response("Rooms retrieved successfully", data, total, page, limit)


@router.get("/{room_id}", summary="Get room with capacities, costs and offered items")
def get_room(room_id: int, db: Session = Depends(get_db), _: User = Depends(rooms_user)):
    return success_response("Room retrieved", room_service.get_room(db, room_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create room")
def create_room(
    body: RoomCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    return success_response("Room created successfully", room_service.create_room(db, body, current_user))


@router.put("/{room_id}", summary="Update room")
def update_room(
    room_id: int,
    body:    RoomUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    return success_response("Room updated successfully", room_service.update_room(db, room_id, body, current_user))


@router.delete("/{room_id}", summary="Deactivate room (soft delete)")
def delete_room(
    room_id: int,
    reason:  Optional[str] = Query(None),
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    data = room_service.delete_room(db, room_id, reason, current_user)
    return success_response("Room deactivated successfully", data)


# ─── Capacities ───────────────────────────────────────────────────────────────
@router.get("/{room_id}/capacities", summary="Capacities per layout")
def list_capacities(room_id: int, db: Session = Depends(get_db), _: User = Depends(rooms_user)):
    return success_response("Capacities retrieved", room_service.list_capacities(db, room_id))


@router.put("/{room_id}/capacities", summary="Set the capacity of one layout")
def set_capacity(
    room_id: int,
    body:    RoomCapacityRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    return success_response("Capacity saved", room_service.set_capacity(db, room_id, body, current_user))


@router.delete("/{room_id}/capacities/{capacity_id}", summary="Remove a capacity")
def delete_capacity(
    room_id:     int,
    capacity_id: int,
    db:          Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    room_service.delete_capacity(db, room_id, capacity_id, current_user)
    return success_response("Capacity removed", None)


# ─── Costs ────────────────────────────────────────────────────────────────────
@router.get("/{room_id}/costs", summary="Room costs")
def list_costs(room_id: int, db: Session = Depends(get_db), _: User = Depends(rooms_user)):
    return success_response("Costs retrieved", room_service.list_costs(db, room_id))


@router.get("/{room_id}/costs/summary", summary="Base price and refundable deposit")
def cost_summary(room_id: int, db: Session = Depends(get_db), _: User = Depends(rooms_user)):
    return success_response("Cost summary retrieved", room_service.cost_summary(db, room_id))


@router.post("/{room_id}/costs", status_code=status.HTTP_201_CREATED, summary="Add a cost (one per cost type)")
def add_cost(
    room_id: int,
    body:    RoomCostRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    return success_response("Cost added", room_service.add_cost(db, room_id, body, current_user))


@router.put("/{room_id}/costs/{cost_id}", summary="Change a cost amount")
def update_cost(
    room_id: int,
    cost_id: int,
    body:    RoomCostUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    return success_response("Cost updated", room_service.update_cost(db, room_id, cost_id, body, current_user))


@router.delete("/{room_id}/costs/{cost_id}", summary="Remove a cost")
def delete_cost(
    room_id: int,
    cost_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    room_service.delete_cost(db, room_id, cost_id, current_user)
    return success_response("Cost removed", None)


# ─── Offered services / equipment / tastings ──────────────────────────────────
@router.get("/{room_id}/{kind}", summary="Services, equipment or tastings offered by the room")
def list_offered(
    room_id: int,
    kind:    OfferedKind = Path(...),
    db:      Session = Depends(get_db),
    _:       User = Depends(rooms_user),
):
    return success_response(f"Offered {kind} retrieved", room_service.list_offered(db, room_id, kind))


@router.post("/{room_id}/{kind}", status_code=status.HTTP_201_CREATED, summary="Offer an item in the room")
def add_offered(
    room_id: int,
    body:    OfferedItemRequest,
    kind:    OfferedKind = Path(...),
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    return success_response("Item offered", room_service.add_offered(db, room_id, kind, body, current_user))


@router.delete("/{room_id}/{kind}/{link_id}", summary="Stop offering an item")
def remove_offered(
    room_id: int,
    link_id: int,
    kind:    OfferedKind = Path(...),
    db:      Session = Depends(get_db),
    current_user: User = Depends(rooms_user),
):
    room_service.remove_offered(db, room_id, kind, link_id, current_user)
    return success_response("Item removed", None)
