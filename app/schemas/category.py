from pydantic import BaseModel, field_validator
from typing import Optional


# ─── Requests (multipart "data" field) ────────────────────────────────────────
class CategoryCreateRequest(BaseModel):
    name:        str
    slug:        Optional[str] = None     # generated from name when empty
    description: Optional[str] = None
    isActive:    bool          = False

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("slug", "description")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None


class CategoryUpdateRequest(BaseModel):
    name:        Optional[str]  = None
    slug:        Optional[str]  = None
    description: Optional[str]  = None
    isActive:    Optional[bool] = None
    removeImage: bool           = False

    @field_validator("name", "slug")
    @classmethod
    def not_blank(cls, v: Optional[str], info) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip() if v is not None else None

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None
