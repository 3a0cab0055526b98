from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import fleet_user, reservations_user
from fleet_venue.models.user import User
from fleet_venue.schemas.common import success_response
from fleet_venue.services.assignment_service import assignment_service
from fleet_venue.services.reservation_service import reservation_service

router = APIRouter(prefix="/reports")


# ─── Fleet ────────────────────────────────────────────────────────────────────
@router.get("/fleet-statistics", summary="Assignment, mileage and fuel statistics")
def fleet_statistics(
    month: Optional[int] = Query(None, ge=1, le=12),
    year:  Optional[int] = Query(None, ge=2000, le=2100),
    db:    Session       = Depends(get_db),
    _:     User          = Depends(fleet_user),
):
    return success_response("Fleet statistics generated", assignment_service.statistics(db, month, year))


# ─── Reservations ─────────────────────────────────────────────────────────────
@router.get("/reservations", summary="Reservation summary by state, room and payments")
def reservations_report(
    startDate: Optional[date] = Query(None),
    endDate:   Optional[date] = Query(None),
    roomId:    Optional[int]  = Query(None),
    db:        Session        = Depends(get_db),
    _:         User           = Depends(reservations_user),
):
    data = reservation_service.summary_report(db, startDate, endDate, roomId)
    return success_response("Reservation report generated", data)
