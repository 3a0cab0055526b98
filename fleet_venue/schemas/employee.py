from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional


class EmployeeCreateRequest(BaseModel):
    firstName:    str
    lastName:     str
    email:        Optional[EmailStr] = None
    phone:        Optional[str] = None
    departmentId: int

    @field_validator("firstName", "lastName")
    @classmethod
    def check_name(cls, v):
        if not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip()


class EmployeeUpdateRequest(BaseModel):
    firstName:    Optional[str] = None
    lastName:     Optional[str] = None
    email:        Optional[EmailStr] = None
    phone:        Optional[str] = None
    departmentId: Optional[int] = None
    isActive:     Optional[bool] = None


class DepartmentCreateRequest(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v.strip(): raise ValueError("Department name cannot be empty")
        return v.strip()
