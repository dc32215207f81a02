from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from app.models.quote_request import QuoteStatus


class QuoteRequestItemIn(BaseModel):
    productId: int
    quantity:  int = Field(..., ge=1)


class QuoteRequestCreate(BaseModel):
    fullName: str
    email:    EmailStr
    phone:    Optional[str] = None
    country:  Optional[str] = None
    city:     Optional[str] = None
    address:  Optional[str] = None
    message:  Optional[str] = None
    items:    list[QuoteRequestItemIn] = Field(..., min_length=1)

    @field_validator("fullName")
    @classmethod
    def full_name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("fullName is required")
        return v.strip()

    @field_validator("phone", "country", "city", "address", "message")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else None


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus


class AdminNoteCreate(BaseModel):
    """Shared by quote and product-request notes."""
    content: str = Field(..., max_length=5000)

    @field_validator("content")
    @classmethod
    def content_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content is required")
        return v.strip()
