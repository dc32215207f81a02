from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.v1.auth import clear_refresh_cookie
from app.database import get_db
from app.dependencies import get_admin_claims, get_session_manager
from app.schemas.auth import ChangePasswordRequest
from app.schemas.user import UserCreateRequest
from app.schemas.common import success_response
from app.services.auth_service import SessionManager, TokenClaims
from app.services.user_service import user_service

router = APIRouter(prefix="/admin/users")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create another admin account")
def create_admin(
    body: UserCreateRequest,
    db:   Session     = Depends(get_db),
    _:    TokenClaims = Depends(get_admin_claims),
):
    return success_response("User created successfully", user_service.create_admin(db, body))


@router.post("/me/password", summary="Change own password and sign out everywhere")
def change_password(
    body:     ChangePasswordRequest,
    response: Response,
    db:       Session        = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
    claims:   TokenClaims    = Depends(get_admin_claims),
):
    revoked = user_service.change_password(db, sessions, claims.user_id, body)
    clear_refresh_cookie(response)
    return success_response("Password changed successfully. Please login again.", {"revokedSessions": revoked})
