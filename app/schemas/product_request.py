from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from app.models.product_request import ProductRequestStatus


class ProductRequestCreate(BaseModel):
    fullName:        str
    email:           EmailStr
    phone:           Optional[str]      = None
    company:         Optional[str]      = None
    vatNumber:       Optional[str]      = None
    country:         Optional[str]      = None
    city:            Optional[str]      = None
    description:     str                = Field(..., max_length=8000)
    quantity:        Optional[int]      = None
    desiredDeadline: Optional[datetime] = None
    budget:          Optional[str]      = None
    referenceUrl:    Optional[str]      = None

    @field_validator("fullName")
    @classmethod
    def full_name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("fullName is required")
        return v.strip()

    @field_validator("description")
    @classmethod
    def description_min(cls, v: str) -> str:
        if len(v.strip()) < 5:
            raise ValueError("description must be at least 5 characters")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def default_quantity(cls, v: Optional[int]) -> int:
        return v if v and v > 0 else 1

    @field_validator("phone", "company", "vatNumber", "country", "city", "budget", "referenceUrl")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else None


class ProductRequestStatusUpdate(BaseModel):
    status: ProductRequestStatus
