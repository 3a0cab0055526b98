from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet_venue.database import get_db
from fleet_venue.dependencies import get_current_user, get_admin_user, fleet_user
from fleet_venue.models.user import User
from fleet_venue.schemas.employee import (
    EmployeeCreateRequest, EmployeeUpdateRequest, DepartmentCreateRequest,
)
from fleet_venue.schemas.common import success_response, paginated_response
from fleet_venue.services.employee_service import employee_service

router = APIRouter()


# ─── Employees ────────────────────────────────────────────────────────────────
@router.get("/employees", summary="List employees (paginated)")
def list_employees(
    page:         int            = Query(1, ge=1),
    limit:        int            = Query(20, ge=1, le=100),
    search:       Optional[str]  = Query(None),
    departmentId: Optional[int]  = Query(None),
    isActive:     Optional[bool] = Query(None),
    db:           Session        = Depends(get_db),
    _:            User           = Depends(get_current_user),
):
    data, total = employee_service.list_employees(db, page, limit, search, departmentId, isActive)
    return paginated_response("Employees retrieved successfully", data, total, page, limit)


@router.get("/employees/{employee_id}", summary="Get employee by ID")
def get_employee(employee_id: int, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return success_response("Employee retrieved", employee_service.get_employee(db, employee_id))


@router.post("/employees", status_code=status.HTTP_201_CREATED, summary="Create employee (Admin)")
def create_employee(
    body: EmployeeCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    return success_response("Employee created successfully", employee_service.create_employee(db, body, current_user))


@router.put("/employees/{employee_id}", summary="Update employee (Admin)")
def update_employee(
    employee_id: int,
    body:        EmployeeUpdateRequest,
    db:          Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    data = employee_service.update_employee(db, employee_id, body, current_user)
    return success_response("Employee updated successfully", data)


# ─── Drivers ──────────────────────────────────────────────────────────────────
@router.get("/drivers", summary="Drivers with their current license")
def list_drivers(db: Session = Depends(get_db), _: User = Depends(fleet_user)):
    return success_response("Drivers retrieved", employee_service.list_drivers(db))


# ─── Departments ──────────────────────────────────────────────────────────────
@router.get("/departments", summary="List departments")
def list_departments(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return success_response("Departments retrieved", employee_service.list_departments(db))


@router.post("/departments", status_code=status.HTTP_201_CREATED, summary="Create department (Admin)")
def create_department(
    body: DepartmentCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(get_admin_user),
):
    return success_response("Department created successfully",
                            employee_service.create_department(db, body, current_user))
