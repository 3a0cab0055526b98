from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import fleet_user
from fleet_venue.models.user import User
from fleet_venue.schemas.license import LicenseCreateRequest, LicenseUpdateRequest
from fleet_venue.schemas.common import success_response, paginated_response
from fleet_venue.services.license_service import license_service

router = APIRouter(prefix="/licenses")


@router.get("", summary="List driver licenses (paginated)")
def list_licenses(
    page:           int            = Query(1, ge=1),
    limit:          int            = Query(20, ge=1, le=100),
    employeeId:     Optional[int]  = Query(None),
    status:         Optional[str]  = Query(None, description="ACTIVE | SUSPENDED | EXPIRED"),
    expiringBefore: Optional[date] = Query(None),
    search:         Optional[str]  = Query(None, description="License number"),
    db:             Session        = Depends(get_db),
    _:              User           = Depends(fleet_user),
):
    data, total = license_service.list_licenses(db, page, limit, employeeId, status, expiringBefore, search)
    return paginated_response("Licenses retrieved successfully", data, total, page, limit)


@router.get("/{license_id}", summary="Get license by ID")
def get_license(license_id: int, db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("License retrieved", license_service.get_license(db, license_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register a driver license")
def create_license(
    body: LicenseCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(fleet_user),
):
    return success_response("License created successfully", license_service.create_license(db, body, current_user))


@router.put("/{license_id}", summary="Update a driver license")
def update_license(
    license_id: int,
    body:       LicenseUpdateRequest,
    db:         Session = Depends(get_db),
    current_user: User = Depends(fleet_user),
):
    data = license_service.update_license(db, license_id, body, current_user)
    return success_response("License updated successfully", data)


@router.delete("/{license_id}", summary="Delete a driver license")
def delete_license(license_id: int, db: Session = Depends(get_db), current_user: User = Depends(fleet_user)):
    license_service.delete_license(db, license_id, current_user)
    return success_response("License deleted successfully", None)
