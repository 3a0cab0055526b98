from datetime import date

from sqlalchemy.orm import Session

from fleet_venue.config import settings
from fleet_venue.models.department import Department
from fleet_venue.models.employee import Employee
from fleet_venue.models.user import User
from fleet_venue.schemas.employee import (
    EmployeeCreateRequest, EmployeeUpdateRequest, DepartmentCreateRequest,
)
from fleet_venue.services.license_service import current_license
from fleet_venue.services.query_builder import QueryFilter, Equals, Contains
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import NotFoundException, DuplicateEntryException


def serialize_employee(e: Employee) -> dict:
    return {
        "id":         e.id,
        "firstName":  e.firstName,
        "lastName":   e.lastName,
        "fullName":   e.fullName,
        "email":      e.email,
        "phone":      e.phone,
        "isActive":   e.isActive,
        "department": {"id": e.department.id, "name": e.department.name},
    }


class EmployeeService:

    def list_employees(
        self, db: Session, page: int, limit: int,
        search: str | None, department_id: int | None, is_active: bool | None,
    ) -> tuple[list[dict], int]:
        filters = QueryFilter(
            Contains([Employee.firstName, Employee.lastName, Employee.email], search),
            Equals(Employee.departmentId, department_id),
            Equals(Employee.isActive, is_active),
        )
        q = filters.apply(db.query(Employee))
        total = q.count()
        items = q.order_by(Employee.lastName, Employee.firstName)\
                 .offset((page - 1) * limit).limit(limit).all()
        return [serialize_employee(e) for e in items], total

    def get(self, db: Session, employee_id: int) -> Employee:
        e = db.query(Employee).filter(Employee.id == employee_id).first()
        if not e:
            raise NotFoundException("Employee")
        return e

    def get_employee(self, db: Session, employee_id: int) -> dict:
        return serialize_employee(self.get(db, employee_id))

    def create_employee(self, db: Session, data: EmployeeCreateRequest, actor: User) -> dict:
        if not db.query(Department).filter(Department.id == data.departmentId).first():
            raise NotFoundException("Department")
        e = Employee(
            firstName=data.firstName,
            lastName=data.lastName,
            email=str(data.email).lower() if data.email else None,
            phone=data.phone,
            departmentId=data.departmentId,
        )
        db.add(e)
        db.flush()
        log_action(db, actor.id, "CREATE", "Employee", e.id, f"Created employee {e.fullName}")
        db.commit()
        db.refresh(e)
        return serialize_employee(e)

    def update_employee(self, db: Session, employee_id: int, data: EmployeeUpdateRequest, actor: User) -> dict:
        e = self.get(db, employee_id)
        if data.departmentId and not db.query(Department).filter(Department.id == data.departmentId).first():
            raise NotFoundException("Department")

        if data.firstName:             e.firstName    = data.firstName.strip()
        if data.lastName:              e.lastName     = data.lastName.strip()
        if data.email:                 e.email        = str(data.email).lower()
        if data.phone is not None:     e.phone        = data.phone
        if data.departmentId:          e.departmentId = data.departmentId
        if data.isActive is not None:  e.isActive     = data.isActive

        log_action(db, actor.id, "UPDATE", "Employee", e.id, f"Updated employee {e.fullName}")
        db.commit()
        db.refresh(e)
        return serialize_employee(e)

    # ─── Drivers ──────────────────────────────────────────────────────────────
    def list_drivers(self, db: Session) -> list[dict]:
        """Active employees of the drivers department, with their current license."""
        drivers = db.query(Employee).join(Employee.department).filter(
            Department.name == settings.DRIVERS_DEPARTMENT_NAME,
            Employee.isActive == True,
        ).order_by(Employee.lastName, Employee.firstName).all()

        today = date.today()
        result = []
        for e in drivers:
            lic = current_license(db, e.id)
            row = serialize_employee(e)
            row["license"] = {
                "id":            lic.id,
                "licenseNumber": lic.licenseNumber,
                "licenseType":   lic.licenseType,
                "expiryDate":    lic.expiryDate.isoformat(),
                "isValid":       lic.expiryDate > today,
            } if lic else None
            result.append(row)
        return result

    # ─── Departments ──────────────────────────────────────────────────────────
    def list_departments(self, db: Session) -> list[dict]:
        return [{"id": d.id, "name": d.name}
                for d in db.query(Department).order_by(Department.name).all()]

    def create_department(self, db: Session, data: DepartmentCreateRequest, actor: User) -> dict:
        if db.query(Department).filter(Department.name == data.name).first():
            raise DuplicateEntryException("Department already exists", field="name")
        d = Department(name=data.name)
        db.add(d)
        db.flush()
        log_action(db, actor.id, "CREATE", "Department", d.id, f"Created department {d.name}")
        db.commit()
        db.refresh(d)
        return {"id": d.id, "name": d.name}


employee_service = EmployeeService()
