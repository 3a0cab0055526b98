from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from datetime import date

from fleet_venue.models.driver_license import LicenseStatus


class LicenseCreateRequest(BaseModel):
    employeeId:    int
    licenseNumber: str
    licenseType:   str
    issueDate:     date
    expiryDate:    date
    status:        LicenseStatus = LicenseStatus.ACTIVE
    restrictions:  Optional[str] = None

    @field_validator("licenseNumber", "licenseType")
    @classmethod
    def check_text(cls, v):
        if not v.strip(): raise ValueError("License number and type cannot be empty")
        return v.strip().upper()

    @model_validator(mode="after")
    def check_dates(self) -> "LicenseCreateRequest":
        if self.expiryDate <= self.issueDate:
            raise ValueError("expiryDate must be after issueDate")
        return self


class LicenseUpdateRequest(BaseModel):
    licenseNumber: Optional[str] = None
    licenseType:   Optional[str] = None
    issueDate:     Optional[date] = None
    expiryDate:    Optional[date] = None
    status:        Optional[LicenseStatus] = None
    restrictions:  Optional[str] = None
