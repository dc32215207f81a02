from fastapi import APIRouter, Cookie, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from app.config import settings
from app.database import get_db
from app.dependencies import get_session_manager
from app.schemas.auth import LoginRequest, LoginResponse, RefreshResponse
from app.schemas.common import SuccessResponse, success_response
from app.services.auth_service import SessionManager

router = APIRouter(prefix="/auth")

REFRESH_COOKIE = "refreshToken"
# Refresh and logout both live under /auth, nothing else ever sees the cookie
REFRESH_COOKIE_PATH = "/auth"


# ─── Cookie helpers ───────────────────────────────────────────────────────────
def set_refresh_cookie(response: Response, value: str, max_age: int) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=value,
        max_age=max_age,
        path=REFRESH_COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="none",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE,
        path=REFRESH_COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="none",
    )


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive an access token (refresh token set as cookie)",
    response_model=SuccessResponse[LoginResponse],
)
def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Authenticate an admin.
    The access token is returned in the body; the refresh token only as an
    HttpOnly cookie scoped to /auth.
    """
    access, record = sessions.authenticate(db, str(data.email), data.password)
    set_refresh_cookie(response, record.token, sessions.refresh_ttl_seconds)
    body = LoginResponse(accessToken=access, expiresIn=sessions.access_ttl_seconds)
    return success_response("Login successful", body.model_dump())


# ─── POST /auth/refresh ───────────────────────────────────────────────────────
@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    summary="Rotate the refresh cookie and get a new access token",
    response_model=SuccessResponse[RefreshResponse],
)
def refresh_token(
    response: Response,
    refreshToken: Optional[str] = Cookie(None),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    access, record = sessions.refresh(db, refreshToken)
    set_refresh_cookie(response, record.token, sessions.refresh_ttl_seconds)
    body = RefreshResponse(accessToken=access, expiresIn=sessions.access_ttl_seconds)
    return success_response("Token refreshed", body.model_dump())


# ─── POST /auth/logout ────────────────────────────────────────────────────────
@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Revoke the refresh token and clear the cookie",
    response_model=SuccessResponse,
)
def logout(
    response: Response,
    refreshToken: Optional[str] = Cookie(None),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Always succeeds. Whether a record was actually revoked is not reported."""
    sessions.logout(db, refreshToken)
    clear_refresh_cookie(response)
    return success_response("Logged out successfully", None)
