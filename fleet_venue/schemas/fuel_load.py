from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from fleet_venue.schemas.common import to_naive_utc


class FuelLoadCreateRequest(BaseModel):
    vehicleId:     int
    assignmentId:  Optional[int] = None
    loadedAt:      Optional[datetime] = None
    liters:        Decimal
    totalCost:     Decimal
    odometer:      int
    station:       Optional[str] = None
    invoiceNumber: Optional[str] = None
    notes:         Optional[str] = None

    @field_validator("liters", "totalCost")
    @classmethod
    def check_positive(cls, v):
        if v <= 0: raise ValueError("Liters and total cost must be greater than 0")
        return v

    @field_validator("odometer")
    @classmethod
    def check_odo(cls, v):
        if v < 0: raise ValueError("Odometer cannot be negative")
        return v

    @field_validator("loadedAt")
    @classmethod
    def normalize_tz(cls, v): return to_naive_utc(v)
