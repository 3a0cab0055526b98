from datetime import date, time

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import reservations_user
from fleet_venue.models.user import User
from fleet_venue.schemas.reservation import (
    ReservationCreateRequest, ReservationUpdateRequest,
    StatusChangeRequest, PaymentCreateRequest,
)
from fleet_venue.schemas.common import success_response, paginated_response, parse_clock, split_csv
from fleet_venue.services.reservation_service import reservation_service
from fleet_venue.utils.exceptions import ValidationException

router = APIRouter(prefix="/reservations")


def _clock(value: str | None, field: str) -> time | None:
    if value is None:
        return None
    try:
        return parse_clock(value)
    except ValueError as e:
        raise ValidationException(str(e), field=field)


# ─── Lookups (static paths before /{reservation_id}) ──────────────────────────
@router.get("/calendar", summary="Calendar events, colored by state")
def calendar(
    startDate: Optional[date] = Query(None),
    endDate:   Optional[date] = Query(None),
    roomId:    Optional[int]  = Query(None),
    db:        Session        = Depends(get_db),
    _:         User           = Depends(reservations_user),
):
    return success_response("Calendar retrieved", reservation_service.calendar(db, startDate, endDate, roomId))


@router.get("/check-overlap", summary="Check a date/time window against open reservations")
def check_overlap(
    eventDate: date          = Query(..., alias="date", description="Event date (YYYY-MM-DD)"),
    startTime: str           = Query(..., description="HH:MM or HH:MM:SS"),
    endTime:   Optional[str] = Query(None, description="Omit for a point-in-time check"),
    roomId:    Optional[int] = Query(None, description="Omit to check every room"),
    db:        Session       = Depends(get_db),
    _:         User          = Depends(reservations_user),
):
    data = reservation_service.check_overlap(
        db, eventDate, _clock(startTime, "startTime"), _clock(endTime, "endTime"), roomId,
    )
    return success_response("Overlap detected" if data["overlap"] else "No overlap", data)


@router.get("/external-requesters/search", summary="Search external requesters")
def search_external(
    q:  Optional[str] = Query(None, description="At least 3 characters"),
    db: Session       = Depends(get_db),
    _:  User          = Depends(reservations_user),
):
    return success_response("External requesters retrieved", reservation_service.search_external(db, q))


# ─── CRUD ─────────────────────────────────────────────────────────────────────
@router.get("", summary="List reservations (paginated)")
def list_reservations(
    page:      int            = Query(1, ge=1),
    limit:     int            = Query(20, ge=1, le=100),
    roomId:    Optional[int]  = Query(None),
    status:    Optional[str]  = Query(None, description="Comma-separated states"),
    startDate: Optional[date] = Query(None),
    endDate:   Optional[date] = Query(None),
    search:    Optional[str]  = Query(None, description="Event name"),
    db:        Session        = Depends(get_db),
    _:         User           = Depends(reservations_user),
):
    data, total = reservation_service.list_reservations(
        db, page, limit, roomId, split_csv(status), startDate, endDate, search,
    )
    return paginated_response("Reservations retrieved successfully", data, total, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a reservation (PENDING)")
def create_reservation(
    body: ReservationCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(reservations_user),
):
    """
    Skipped selection ids come back in ``warnings``.
    - 409 BOOKING_CONFLICT with the overlapping reservations
    """
    data, warnings = reservation_service.create(db, body, current_user)
    return success_response("Reservation created. Status: PENDING", data, warnings)


@router.get("/{reservation_id}", summary="Get reservation with selections")
def get_reservation(reservation_id: int, db: Session = Depends(get_db), _: User = Depends(reservations_user)):
    return success_response("Reservation retrieved", reservation_service.get_reservation(db, reservation_id))


@router.put("/{reservation_id}", summary="Update a reservation")
def update_reservation(
    reservation_id: int,
    body:           ReservationUpdateRequest,
    db:             Session = Depends(get_db),
    current_user:   User = Depends(reservations_user),
):
    data, warnings = reservation_service.update(db, reservation_id, body, current_user)
    return success_response("Reservation updated", data, warnings)


@router.put("/{reservation_id}/status", summary="Move a reservation to another state")
def change_status(
    reservation_id: int,
    body:           StatusChangeRequest,
    db:             Session = Depends(get_db),
    current_user:   User = Depends(reservations_user),
):
    data = reservation_service.change_status(db, reservation_id, body.status, body.reason, current_user)
    return success_response(f"Reservation is now {data['status']}", data)


@router.get("/{reservation_id}/changes", summary="Audit of date, time and name changes")
def changes(reservation_id: int, db: Session = Depends(get_db), _: User = Depends(reservations_user)):
    return success_response("Changes retrieved", reservation_service.changes(db, reservation_id))


# ─── Payment ──────────────────────────────────────────────────────────────────
@router.post("/{reservation_id}/payment", status_code=status.HTTP_201_CREATED,
             summary="Record the payment and authorize the reservation")
def create_payment(
    reservation_id: int,
    body:           PaymentCreateRequest,
    db:             Session = Depends(get_db),
    current_user:   User = Depends(reservations_user),
):
    data = reservation_service.create_payment(db, reservation_id, body, current_user)
    return success_response("Payment recorded. Reservation AUTHORIZED", data)


@router.get("/{reservation_id}/payment", summary="Get the reservation's payment")
def get_payment(reservation_id: int, db: Session = Depends(get_db), _: User = Depends(reservations_user)):
    return success_response("Payment retrieved", reservation_service.get_payment(db, reservation_id))


# ─── Contract ─────────────────────────────────────────────────────────────────
@router.get("/{reservation_id}/contract", summary="Contract payload (AUTHORIZED or FINALIZED)")
def get_contract(reservation_id: int, db: Session = Depends(get_db), _: User = Depends(reservations_user)):
    return success_response("Contract data generated", reservation_service.contract(db, reservation_id))


@router.post("/{reservation_id}/contract", summary="Issue the contract (AUTHORIZED -> FINALIZED)")
def issue_contract(
    reservation_id: int,
    db:             Session = Depends(get_db),
    current_user:   User = Depends(reservations_user),
):
    data = reservation_service.issue_contract(db, reservation_id, current_user)
    return success_response("Contract issued", data)
