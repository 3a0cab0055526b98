from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import date
from decimal import Decimal


class MaintenanceCreateRequest(BaseModel):
    vehicleId:         int
    maintenanceTypeId: int
    description:       str
    serviceDate:       date
    odometer:          Optional[int]     = None
    cost:              Optional[Decimal] = None
    provider:          Optional[str]     = None
    notes:             Optional[str]     = None

    @field_validator("description")
    @classmethod
    def check_desc(cls, v):
        if not v.strip(): raise ValueError("Description cannot be empty")
        return v.strip()

    @field_validator("cost")
    @classmethod
    def check_cost(cls, v):
        if v is not None and v < 0: raise ValueError("Cost cannot be negative")
        return v


class MaintenanceCompleteRequest(BaseModel):
    cost:  Optional[Decimal] = None
    notes: Optional[str]     = None

    @field_validator("cost")
    @classmethod
    def check_cost(cls, v):
        if v is not None and v < 0: raise ValueError("Cost cannot be negative")
        return v
