from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import fleet_user
from fleet_venue.models.user import User
from fleet_venue.schemas.fuel_load import FuelLoadCreateRequest
from fleet_venue.schemas.common import success_response, paginated_response
from fleet_venue.services.fuel_service import fuel_service

router = APIRouter(prefix="/fuel-loads")


@router.get("", summary="List fuel loads (paginated)")
def list_fuel_loads(
    page:         int            = Query(1, ge=1),
    limit:        int            = Query(20, ge=1, le=100),
    vehicleId:    Optional[int]  = Query(None),
    assignmentId: Optional[int]  = Query(None),
    startDate:    Optional[date] = Query(None),
    endDate:      Optional[date] = Query(None),
    db:           Session        = Depends(get_db),
    _:            User           = Depends(fleet_user),
):
    data, total = fuel_service.list_loads(db, page, limit, vehicleId, assignmentId, startDate, endDate)
    return paginated_response("Fuel loads retrieved successfully", data, total, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Record a fuel load")
def create_fuel_load(
    body: FuelLoadCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(fleet_user),
):
    return success_response("Fuel load recorded", fuel_service.create_load(db, body, current_user))
