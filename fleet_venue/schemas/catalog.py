from pydantic import BaseModel, field_validator
from typing import Optional


class CatalogItemRequest(BaseModel):
    name:         str
    description:  Optional[str]  = None
    isCorrective: Optional[bool] = None   # maintenance types only

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip()


class CatalogItemUpdateRequest(BaseModel):
    name:         Optional[str]  = None
    description:  Optional[str]  = None
    isCorrective: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is not None and not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip() if v else v
