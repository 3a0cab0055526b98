from pydantic import BaseModel, EmailStr, field_validator, model_validator
from typing import Any, Optional
from datetime import date, time
from decimal import Decimal

from fleet_venue.models.booking import BookingStatus
from fleet_venue.models.reservation import RequesterType
from fleet_venue.schemas.common import parse_clock


class ExternalRequesterIn(BaseModel):
    name:    str
    email:   EmailStr
    company: str
    phone:   Optional[str] = None

    @field_validator("name", "company")
    @classmethod
    def check_text(cls, v):
        if not v.strip(): raise ValueError("Name and company are required for external requesters")
        return v.strip()


class ReservationCreateRequest(BaseModel):
    roomId:            int
    eventName:         str
    eventDate:         date
    startTime:         time
    endTime:           time
    participants:      Optional[int] = None
    notes:             Optional[str] = None
    requesterType:     RequesterType
    employeeId:        Optional[int] = None
    externalRequester: Optional[ExternalRequesterIn] = None
    layoutTypeId:      Optional[int] = None
    capacity:          Optional[int] = None
    roomNote:          Optional[str] = None
    requiresTasting:   bool = False
    # Items may be an id, a numeric string, or {"id": .., "note": ..}; bad ones become warnings
    services:          list[Any] = []
    equipment:         list[Any] = []
    tastings:          list[Any] = []

    @field_validator("startTime", "endTime", mode="before")
    @classmethod
    def clock(cls, v): return parse_clock(v)

    @field_validator("eventName")
    @classmethod
    def check_name(cls, v):
        if not v.strip(): raise ValueError("Event name cannot be empty")
        return v.strip()

    @field_validator("participants", "capacity")
    @classmethod
    def check_count(cls, v):
        if v is not None and v <= 0: raise ValueError("Must be greater than 0")
        return v

    @model_validator(mode="after")
    def check_requester(self) -> "ReservationCreateRequest":
        if self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        if self.requesterType == RequesterType.INTERNAL and self.employeeId is None:
            raise ValueError("employeeId is required for internal requesters")
        if self.requesterType == RequesterType.EXTERNAL and self.externalRequester is None:
            raise ValueError("externalRequester (name, email, company) is required for external requesters")
        return self


class ReservationUpdateRequest(BaseModel):
    roomId:            Optional[int]  = None
    eventName:         Optional[str]  = None
    eventDate:         Optional[date] = None
    startTime:         Optional[time] = None
    endTime:           Optional[time] = None
    participants:      Optional[int]  = None
    notes:             Optional[str]  = None
    layoutTypeId:      Optional[int]  = None
    capacity:          Optional[int]  = None
    roomNote:          Optional[str]  = None
    requiresTasting:   Optional[bool] = None
    dateChangeReason:  Optional[str]  = None
    timeChangeReason:  Optional[str]  = None
    # None keeps the current selections; a list replaces them
    services:          Optional[list[Any]] = None
    equipment:         Optional[list[Any]] = None
    tastings:          Optional[list[Any]] = None

    @field_validator("startTime", "endTime", mode="before")
    @classmethod
    def clock(cls, v): return parse_clock(v) if v is not None else v

    @field_validator("eventName")
    @classmethod
    def check_name(cls, v):
        if v is not None and not v.strip(): raise ValueError("Event name cannot be empty")
        return v.strip() if v else v


class StatusChangeRequest(BaseModel):
    status: BookingStatus
    reason: Optional[str] = None


class PaymentCreateRequest(BaseModel):
    paymentTypeId: int
    total:         Decimal
    advance:       Decimal = Decimal("0")
    balance:       Optional[Decimal] = None   # defaults to total - advance
    receiptNumber: Optional[str] = None
    notes:         Optional[str] = None

    @field_validator("total", "advance", "balance")
    @classmethod
    def check_amount(cls, v):
        if v is not None and v < 0: raise ValueError("Amounts cannot be negative")
        return v

    @model_validator(mode="after")
    def check_advance(self) -> "PaymentCreateRequest":
        if self.advance > self.total:
            raise ValueError("advance cannot exceed total")
        if self.balance is None:
            self.balance = self.total - self.advance
        return self
