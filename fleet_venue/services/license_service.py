from datetime import date

from sqlalchemy.orm import Session

from fleet_venue.models.booking import NON_TERMINAL_STATUSES
from fleet_venue.models.driver_license import DriverLicense, LicenseStatus
from fleet_venue.models.employee import Employee
from fleet_venue.models.user import User
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.schemas.license import LicenseCreateRequest, LicenseUpdateRequest
from fleet_venue.services.query_builder import QueryFilter, Equals, AtMost, Contains
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ResourceInUseException,
    ErrorCode, InvalidDateRangeException,
)


def serialize_license(lic: DriverLicense) -> dict:
    return {
        "id":            lic.id,
        "employeeId":    lic.employeeId,
        "employeeName":  lic.employee.fullName if lic.employee else None,
        "licenseNumber": lic.licenseNumber,
        "licenseType":   lic.licenseType,
        "issueDate":     lic.issueDate.isoformat(),
        "expiryDate":    lic.expiryDate.isoformat(),
        "status":        lic.status.value,
        "restrictions":  lic.restrictions,
        "isValid":       lic.status == LicenseStatus.ACTIVE and lic.expiryDate > date.today(),
    }


def find_valid_license(db: Session, employee_id: int, on_date: date) -> DriverLicense | None:
    """An ACTIVE license expiring strictly after ``on_date``."""
    return db.query(DriverLicense).filter(
        DriverLicense.employeeId == employee_id,
        DriverLicense.status == LicenseStatus.ACTIVE,
        DriverLicense.expiryDate > on_date,
    ).order_by(DriverLicense.expiryDate.desc()).first()


def current_license(db: Session, employee_id: int) -> DriverLicense | None:
    """Latest ACTIVE license regardless of expiry (shown on driver listings)."""
    return db.query(DriverLicense).filter(
        DriverLicense.employeeId == employee_id,
        DriverLicense.status == LicenseStatus.ACTIVE,
    ).order_by(DriverLicense.expiryDate.desc()).first()


class LicenseService:

    def list_licenses(
        self, db: Session, page: int, limit: int,
        employee_id: int | None, status: str | None,
        expiring_before: date | None, search: str | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            Equals(DriverLicense.employeeId, employee_id),
            Equals(DriverLicense.status, status),
            AtMost(DriverLicense.expiryDate, expiring_before),
            Contains(DriverLicense.licenseNumber, search),
        )
        q = filters.apply(db.query(DriverLicense))
        total = q.count()
        items = q.order_by(DriverLicense.expiryDate).offset((page - 1) * limit).limit(limit).all()
        return [serialize_license(lic) for lic in items], total

    def get_license(self, db: Session, license_id: int) -> dict:
        return serialize_license(self._get(db, license_id))

    def _get(self, db: Session, license_id: int) -> DriverLicense:
        lic = db.query(DriverLicense).filter(DriverLicense.id == license_id).first()
        if not lic:
            raise NotFoundException("Driver license")
        return lic

    def _check_unique(self, db: Session, employee_id: int, number: str | None,
                      status: LicenseStatus, exclude_id: int | None = None):
        if number:
            q = db.query(DriverLicense).filter(DriverLicense.licenseNumber == number)
            if exclude_id: q = q.filter(DriverLicense.id != exclude_id)
            if q.first():
                raise DuplicateEntryException("License number already registered", field="licenseNumber")
        if status == LicenseStatus.ACTIVE:
            q = db.query(DriverLicense).filter(
                DriverLicense.employeeId == employee_id,
                DriverLicense.status == LicenseStatus.ACTIVE,
            )
            if exclude_id: q = q.filter(DriverLicense.id != exclude_id)
            if q.first():
                raise DuplicateEntryException("Employee already has an active license", field="employeeId")

    def create_license(self, db: Session, data: LicenseCreateRequest, actor: User) -> dict:
        if not db.query(Employee).filter(Employee.id == data.employeeId).first():
            raise NotFoundException("Employee")
        self._check_unique(db, data.employeeId, data.licenseNumber, data.status)

        lic = DriverLicense(**data.model_dump())
        db.add(lic)
        db.flush()
        log_action(db, actor.id, "CREATE", "DriverLicense", lic.id,
                   f"License {lic.licenseNumber} registered for employee #{lic.employeeId}")
        db.commit()
        db.refresh(lic)
        return serialize_license(lic)

    def update_license(self, db: Session, license_id: int, data: LicenseUpdateRequest, actor: User) -> dict:
        lic = self._get(db, license_id)
        number = data.licenseNumber.strip().upper() if data.licenseNumber else None
        status = data.status or lic.status
        self._check_unique(db, lic.employeeId, number if number != lic.licenseNumber else None,
                           status, exclude_id=lic.id)

        if number:                       lic.licenseNumber = number
        if data.licenseType:             lic.licenseType   = data.licenseType.strip().upper()
        if data.issueDate:               lic.issueDate     = data.issueDate
        if data.expiryDate:              lic.expiryDate    = data.expiryDate
        if data.status:                  lic.status        = data.status
        if data.restrictions is not None: lic.restrictions = data.restrictions
        if lic.expiryDate <= lic.issueDate:
            raise InvalidDateRangeException("expiryDate must be after issueDate")

        log_action(db, actor.id, "UPDATE", "DriverLicense", lic.id, f"Updated license {lic.licenseNumber}")
        db.commit()
        db.refresh(lic)
        return serialize_license(lic)

    def delete_license(self, db: Session, license_id: int, actor: User) -> None:
        lic = self._get(db, license_id)
        in_use = db.query(VehicleAssignment).filter(
            VehicleAssignment.driverId == lic.employeeId,
            VehicleAssignment.status.in_(NON_TERMINAL_STATUSES),
        ).first()
        if in_use:
            raise ResourceInUseException(
                f"License holder has an open vehicle assignment (#{in_use.id})",
                ErrorCode.LICENSE_IN_USE,
            )
        log_action(db, actor.id, "DELETE", "DriverLicense", lic.id, f"Deleted license {lic.licenseNumber}")
        db.delete(lic)
        db.commit()


license_service = LicenseService()
