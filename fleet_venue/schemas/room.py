from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from decimal import Decimal


class RoomCreateRequest(BaseModel):
    name:        str
    length:      Optional[Decimal] = None
    width:       Optional[Decimal] = None
    stageLength: Optional[Decimal] = None
    stageWidth:  Optional[Decimal] = None
    note:        Optional[str]     = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v.strip(): raise ValueError("Room name cannot be empty")
        return v.strip()

    @field_validator("length", "width", "stageLength", "stageWidth")
    @classmethod
    def check_dimension(cls, v):
        if v is not None and v <= 0: raise ValueError("Dimensions must be greater than 0")
        return v

    @model_validator(mode="after")
    def check_stage(self) -> "RoomCreateRequest":
        if (self.stageLength is None) != (self.stageWidth is None):
            raise ValueError("Stage needs both stageLength and stageWidth")
        return self


class RoomUpdateRequest(BaseModel):
    name:        Optional[str]     = None
    length:      Optional[Decimal] = None
    width:       Optional[Decimal] = None
    stageLength: Optional[Decimal] = None
    stageWidth:  Optional[Decimal] = None
    removeStage: bool = False
    note:        Optional[str]     = None

    @field_validator("length", "width", "stageLength", "stageWidth")
    @classmethod
    def check_dimension(cls, v):
        if v is not None and v <= 0: raise ValueError("Dimensions must be greater than 0")
        return v


class RoomCapacityRequest(BaseModel):
    layoutTypeId: int
    people:       int

    @field_validator("people")
    @classmethod
    def check_people(cls, v):
        if v <= 0: raise ValueError("Number of people must be greater than 0")
        return v


class RoomCostRequest(BaseModel):
    costTypeId: int
    amount:     Decimal

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        if v < 0: raise ValueError("Amount cannot be negative")
        return v


class RoomCostUpdateRequest(BaseModel):
    amount: Decimal

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        if v < 0: raise ValueError("Amount cannot be negative")
        return v


class OfferedItemRequest(BaseModel):
    itemId: int
    note:   Optional[str] = None
