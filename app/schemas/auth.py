from pydantic import BaseModel, EmailStr, field_validator


# ─── Helpers ──────────────────────────────────────────────────────────────────
def validate_password_length(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    return v


# ─── Request Schemas ──────────────────────────────────────────────────────────
class LoginRequest(BaseModel):
    email:    EmailStr
    password: str


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword:     str

    @field_validator("newPassword")
    @classmethod
    def password_length(cls, v: str) -> str:
        return validate_password_length(v)


# ─── Response Schemas ─────────────────────────────────────────────────────────
class LoginResponse(BaseModel):
    # The refresh token travels only in the HttpOnly cookie
    accessToken: str
    tokenType:   str = "Bearer"
    expiresIn:   int          # seconds


class RefreshResponse(BaseModel):
    accessToken: str
    tokenType:   str = "Bearer"
    expiresIn:   int
