from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class ProductCreateRequest(BaseModel):
    name:            str           = Field(..., min_length=3)
    slug:            Optional[str] = None
    price:           Decimal       = Field(..., gt=0)
    quantity:        int           = Field(..., ge=0)
    categoryIds:     list[int]     = Field(..., min_length=1)
    materials:       list[str]     = []
    colors:          list[str]     = []
    description:     Optional[str] = None
    descriptionFull: Optional[str] = None
    dimensions:      Optional[str] = None
    weight:          Optional[str] = None
    isTrending:      bool          = False
    isDisabled:      bool          = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class ProductUpdateRequest(BaseModel):
    name:             Optional[str]       = Field(None, min_length=3)
    slug:             Optional[str]       = None
    price:            Optional[Decimal]   = Field(None, gt=0)
    quantity:         Optional[int]       = Field(None, ge=0)
    categoryIds:      Optional[list[int]] = Field(None, min_length=1)
    materials:        Optional[list[str]] = None
    colors:           Optional[list[str]] = None
    description:      Optional[str]       = None
    descriptionFull:  Optional[str]       = None
    dimensions:       Optional[str]       = None
    weight:           Optional[str]       = None
    isTrending:       Optional[bool]      = None
    isDisabled:       Optional[bool]      = None
    removedImageUrls: list[str]           = []

    @field_validator("slug")
    @classmethod
    def slug_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("slug cannot be empty")
        return v.strip() if v is not None else None
