from pydantic import BaseModel, EmailStr, field_validator

from app.schemas.auth import validate_password_length


# ─── Request ──────────────────────────────────────────────────────────────────
class UserCreateRequest(BaseModel):
    email:    EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, v): return validate_password_length(v)
