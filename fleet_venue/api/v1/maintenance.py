from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import fleet_user
from fleet_venue.models.user import User
from fleet_venue.schemas.maintenance import MaintenanceCreateRequest, MaintenanceCompleteRequest
from fleet_venue.schemas.common import success_response, paginated_response
from fleet_venue.services.maintenance_service import maintenance_service

router = APIRouter(prefix="/maintenance")


@router.get("", summary="List maintenance records (paginated)")
def list_records(
    page:              int            = Query(1, ge=1),
    limit:             int            = Query(20, ge=1, le=100),
    vehicleId:         Optional[int]  = Query(None),
    maintenanceTypeId: Optional[int]  = Query(None),
    ongoing:           Optional[bool] = Query(None, description="true = not yet completed"),
    db:                Session        = Depends(get_db),
    _:                 User           = Depends(fleet_user),
):
    data, total = maintenance_service.list_records(db, page, limit, vehicleId, maintenanceTypeId, ongoing)
    return paginated_response("Maintenance records retrieved successfully", data, total, page, limit)


@router.get("/{record_id}", summary="Get maintenance record by ID")
def get_record(record_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Maintenance record retrieved", maintenance_service.get_record(db, record_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Record maintenance")
def create_record(
    body: MaintenanceCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(fleet_user),
):
    """Corrective maintenance puts the vehicle in MAINTENANCE until completed."""
    return success_response("Maintenance recorded", maintenance_service.create_record(db, body, current_user))


@router.patch("/{record_id}/complete", summary="Complete maintenance and release the vehicle")
def complete_record(
    record_id: int,
    body:      MaintenanceCompleteRequest,
    db:        Session = Depends(get_db),
    current_user: User = Depends(fleet_user),
):
    data = maintenance_service.complete_record(db, record_id, body, current_user)
    return success_response("Maintenance completed", data)
