from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import fleet_user
from fleet_venue.models.user import User
from fleet_venue.schemas.assignment import (
    AssignmentCreateRequest, AssignmentUpdateRequest, AssignmentFinalizeRequest,
)
from fleet_venue.schemas.common import success_response, paginated_response, split_csv
from fleet_venue.services.assignment_service import assignment_service

router = APIRouter(prefix="/assignments")


# ─── Create ───────────────────────────────────────────────────────────────────
@router.post("", status_code=status.HTTP_201_CREATED, summary="Assign a vehicle to a driver")
def create_assignment(
    body: AssignmentCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(fleet_user),
):
    """
    Starts ACTIVE (vehicle goes IN_USE), or PENDING when requiresAuthorization is set.
    - 409 BOOKING_CONFLICT with the overlapping assignments
    - 400 INVALID_LICENSE when the driver has no valid license
    """
    data = assignment_service.create(db, body, current_user)
    return success_response("Vehicle assignment created", data)


# ─── Reads (static paths before /{assignment_id}) ─────────────────────────────
@router.get("/active", summary="Open assignments (PENDING, AUTHORIZED, ACTIVE)")
def list_active(db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Active assignments retrieved", assignment_service.list_active(db))


@router.get("/history", summary="Assignment history (paginated)")
def history(
    page:      int            = Query(1, ge=1),
    limit:     int            = Query(20, ge=1, le=100),
    startDate: Optional[date] = Query(None),
    endDate:   Optional[date] = Query(None),
    vehicleId: Optional[int]  = Query(None),
    driverId:  Optional[int]  = Query(None),
    status:    Optional[str]  = Query(None, description="Comma-separated, e.g. FINALIZED,CANCELLED"),
    db:        Session        = Depends(get_db),
    _:         User           = Depends(fleet_user),
):
    data, total = assignment_service.history(
        db, page, limit, startDate, endDate, vehicleId, driverId, split_csv(status),
    )
    return paginated_response("Assignment history retrieved", data, total, page, limit)


@router.get("/{assignment_id}", summary="Get assignment by ID")
def get_assignment(assignment_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Assignment retrieved", assignment_service.get_assignment(db, assignment_id))


@router.get("/{assignment_id}/trips", summary="Trip logs of an assignment")
def trip_logs(assignment_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Trip logs retrieved", assignment_service.trip_logs(db, assignment_id))


@router.get("/{assignment_id}/contract", summary="Contract payload (AUTHORIZED or ACTIVE)")
def contract(assignment_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Contract data generated", assignment_service.contract_payload(db, assignment_id))


# ─── Update / transitions ─────────────────────────────────────────────────────
@router.put("/{assignment_id}", summary="Edit a PENDING or AUTHORIZED assignment")
def update_assignment(
    assignment_id: int,
    body:          AssignmentUpdateRequest,
    db:            Session = Depends(get_db),
    current_user:  User = Depends(fleet_user),
):
    data = assignment_service.update(db, assignment_id, body, current_user)
    return success_response("Assignment updated", data)


@router.put("/{assignment_id}/authorize", summary="Authorize a PENDING assignment")
def authorize(assignment_id: int, db: Session = Depends(get_db), current_user: User = Depends(fleet_user)):
    return success_response("Assignment authorized", assignment_service.authorize(db, assignment_id, current_user))


@router.put("/{assignment_id}/start", summary="Start an AUTHORIZED assignment")
def start(assignment_id: int, db: Session = Depends(get_db), current_user: User = Depends(fleet_user)):
    return success_response("Assignment started", assignment_service.start(db, assignment_id, current_user))


@router.put("/{assignment_id}/finalize", summary="Close an assignment and log the trip")
def finalize(
    assignment_id: int,
    body:          AssignmentFinalizeRequest,
    db:            Session = Depends(get_db),
    current_user:  User = Depends(fleet_user),
):
    data = assignment_service.finalize(db, assignment_id, body, current_user)
    return success_response(f"Assignment finalized, {data['distance']} km travelled", data)


@router.delete("/{assignment_id}", summary="Cancel an assignment")
def cancel(
    assignment_id: int,
    reason:        Optional[str] = Query(None),
    db:            Session = Depends(get_db),
    current_user:  User = Depends(fleet_user),
):
    data = assignment_service.cancel(db, assignment_id, reason, current_user)
    return success_response("Assignment cancelled", data)
