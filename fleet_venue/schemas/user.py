from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional
import re

from fleet_venue.models.role import RoleName


def validate_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one digit")
    return v


class UserCreateRequest(BaseModel):
    name:       str
    email:      EmailStr
    password:   str
    role:       RoleName = RoleName.STAFF
    employeeId: Optional[int] = None
    modules:    list[str] = []

    @field_validator("password")
    @classmethod
    def check_password(cls, v): return validate_password_strength(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip()


class UserUpdateRequest(BaseModel):
    name:       Optional[str] = None
    email:      Optional[EmailStr] = None
    role:       Optional[RoleName] = None
    employeeId: Optional[int] = None
    isActive:   Optional[bool] = None
    password:   Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is not None and not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip() if v else v

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password_strength(v) if v is not None else v


class ModuleAssignRequest(BaseModel):
    modules: list[str]

    @field_validator("modules")
    @classmethod
    def normalize(cls, v):
        return sorted({m.strip().upper() for m in v if m and m.strip()})


class ModuleCreateRequest(BaseModel):
    code:        str
    name:        str
    description: Optional[str] = None

    @field_validator("code")
    @classmethod
    def check_code(cls, v):
        if not v.strip(): raise ValueError("Module code cannot be empty")
        return v.strip().upper()
