from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import date
from fleet_venue.models.resource import ResourceStatus


class VehicleCreateRequest(BaseModel):
    name:               Optional[str]  = None   # display name, defaults to "brand model (plate)"
    plateNumber:        str
    brand:              str
    model:              str
    year:               int
    color:              Optional[str]  = None
    chassisNumber:      Optional[str]  = None
    engineNumber:       Optional[str]  = None
    vehicleTypeId:      Optional[int]  = None
    registrationCard:   Optional[str]  = None
    registrationExpiry: Optional[date] = None
    insurancePolicy:    Optional[str]  = None
    insuranceExpiry:    Optional[date] = None
    currentOdometer:    int = 0
    notes:              Optional[str]  = None

    @field_validator("year")
    @classmethod
    def check_year(cls, v):
        if not (1900 <= v <= 2100): raise ValueError("Year must be between 1900 and 2100")
        return v

    @field_validator("currentOdometer")
    @classmethod
    def check_odo(cls, v):
        if v < 0: raise ValueError("Odometer cannot be negative")
        return v

    @field_validator("plateNumber")
    @classmethod
    def check_plate(cls, v):
        if not v.strip(): raise ValueError("Plate number cannot be empty")
        return v.strip().upper()

    @field_validator("brand", "model")
    @classmethod
    def check_text(cls, v):
        if not v.strip(): raise ValueError("Brand and model cannot be empty")
        return v.strip()


class VehicleUpdateRequest(BaseModel):
    name:               Optional[str]  = None
    plateNumber:        Optional[str]  = None
    brand:              Optional[str]  = None
    model:              Optional[str]  = None
    year:               Optional[int]  = None
    color:              Optional[str]  = None
    chassisNumber:      Optional[str]  = None
    engineNumber:       Optional[str]  = None
    vehicleTypeId:      Optional[int]  = None
    registrationCard:   Optional[str]  = None
    registrationExpiry: Optional[date] = None
    insurancePolicy:    Optional[str]  = None
    insuranceExpiry:    Optional[date] = None
    currentOdometer:    Optional[int]  = None
    notes:              Optional[str]  = None

    @field_validator("year")
    @classmethod
    def check_year(cls, v):
        if v is not None and not (1900 <= v <= 2100): raise ValueError("Year must be between 1900 and 2100")
        return v

    @field_validator("currentOdometer")
    @classmethod
    def check_odo(cls, v):
        if v is not None and v < 0: raise ValueError("Odometer cannot be negative")
        return v

    @field_validator("plateNumber")
    @classmethod
    def check_plate(cls, v):
        if v is None: return v
        if not v.strip(): raise ValueError("Plate number cannot be empty")
        return v.strip().upper()


class VehicleStatusRequest(BaseModel):
    status: ResourceStatus
    reason: Optional[str] = None
