from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import fleet_user
from fleet_venue.models.user import User
from fleet_venue.schemas.vehicle import (
    VehicleCreateRequest, VehicleUpdateRequest, VehicleStatusRequest,
)
from fleet_venue.schemas.common import success_response, paginated_response
from fleet_venue.services.vehicle_service import vehicle_service

router = APIRouter(prefix="/vehicles")


@router.get("", summary="List vehicles (paginated)")
def list_vehicles(
    page:          int           = Query(1, ge=1),
    limit:         int           = Query(20, ge=1, le=100),
    search:        Optional[str] = Query(None, description="Plate, brand, model or name"),
    vehicleTypeId: Optional[int] = Query(None),
    status:        Optional[str] = Query(None, description="AVAILABLE | IN_USE | MAINTENANCE | INACTIVE"),
    db:            Session       = Depends(get_db),
    _:             User          = Depends(fleet_user),
):
    data, total = vehicle_service.list_vehicles(db, page, limit, search, vehicleTypeId, status)
    return paginated_response("Vehicles retrieved successfully", data, total, page, limit)


@router.get("/{vehicle_id}", summary="Get vehicle by ID")
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Vehicle retrieved", vehicle_service.get_vehicle(db, vehicle_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register vehicle")
def create_vehicle(
    body: VehicleCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(fleet_user),
):
    data = vehicle_service.create_vehicle(db, body, current_user)
    return success_response("Vehicle created successfully", data)


@router.put("/{vehicle_id}", summary="Update vehicle")
def update_vehicle(
    vehicle_id: int,
    body:       VehicleUpdateRequest,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(fleet_user),
):
    data = vehicle_service.update_vehicle(db, vehicle_id, body, current_user)
    return success_response("Vehicle updated successfully", data)


@router.patch("/{vehicle_id}/status", summary="Change vehicle status")
def update_status(
    vehicle_id: int,
    body:       VehicleStatusRequest,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(fleet_user),
):
    data = vehicle_service.update_status(db, vehicle_id, body, current_user)
    return success_response("Vehicle status updated", data)


@router.delete("/{vehicle_id}", summary="Deactivate vehicle (soft delete)")
def delete_vehicle(
    vehicle_id: int,
    reason:     Optional[str] = Query(None),
    db:         Session = Depends(get_db),
    current_user: User  = Depends(fleet_user),
):
    data = vehicle_service.delete_vehicle(db, vehicle_id, reason, current_user)
    return success_response("Vehicle deactivated successfully", data)


@router.get("/{vehicle_id}/fuel-loads", summary="Fuel loads of a vehicle")
def vehicle_fuel_loads(vehicle_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Fuel loads retrieved", vehicle_service.fuel_loads(db, vehicle_id))


@router.get("/{vehicle_id}/maintenance", summary="Maintenance history of a vehicle")
def vehicle_maintenance(vehicle_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Maintenance records retrieved", vehicle_service.maintenance(db, vehicle_id))
