from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from datetime import datetime

from fleet_venue.schemas.common import to_naive_utc


class AssignmentCreateRequest(BaseModel):
    vehicleId:             int
    driverId:              int                  # employee id
    requesterId:           Optional[int] = None
    assignmentTypeId:      Optional[int] = None
    startDate:             datetime
    endDate:               Optional[datetime] = None   # None = open-ended
    destination:           Optional[str] = None
    purpose:               Optional[str] = None
    startOdometer:         int
    startFuelLevel:        Optional[str] = None
    notes:                 Optional[str] = None
    requiresAuthorization: bool = False

    @field_validator("startDate", "endDate")
    @classmethod
    def normalize_tz(cls, v): return to_naive_utc(v)

    @field_validator("startOdometer")
    @classmethod
    def check_odo(cls, v):
        if v < 0: raise ValueError("Odometer cannot be negative")
        return v

    @model_validator(mode="after")
    def check_dates(self) -> "AssignmentCreateRequest":
        if self.endDate is not None and self.endDate <= self.startDate:
            raise ValueError("endDate must be after startDate")
        return self


class AssignmentUpdateRequest(BaseModel):
    startDate:        Optional[datetime] = None
    endDate:          Optional[datetime] = None
    clearEndDate:     bool = False          # make the window open-ended
    driverId:         Optional[int] = None
    requesterId:      Optional[int] = None
    assignmentTypeId: Optional[int] = None
    destination:      Optional[str] = None
    purpose:          Optional[str] = None
    startOdometer:    Optional[int] = None
    startFuelLevel:   Optional[str] = None
    notes:            Optional[str] = None
    reason:           Optional[str] = None   # recorded on the change audit

    @field_validator("startDate", "endDate")
    @classmethod
    def normalize_tz(cls, v): return to_naive_utc(v)


class AssignmentFinalizeRequest(BaseModel):
    endOdometer:  int
    endFuelLevel: Optional[str] = None
    notes:        Optional[str] = None
    returnedAt:   Optional[datetime] = None

    @field_validator("returnedAt")
    @classmethod
    def normalize_tz(cls, v): return to_naive_utc(v)
