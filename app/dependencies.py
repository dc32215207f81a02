from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import settings
from app.models.user import RoleName
from app.services.auth_service import SessionManager, TokenClaims, session_manager
from app.services.attachment_service import AttachmentHelper
from app.utils.storage import ObjectStore, S3ObjectStore
from app.utils.exceptions import UnauthorizedException, ForbiddenException

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Services ─────────────────────────────────────────────────────────────────
def get_session_manager() -> SessionManager:
    return session_manager


@lru_cache
def get_object_store() -> ObjectStore:
    return S3ObjectStore.from_settings(settings)


def get_attachment_helper(store: ObjectStore = Depends(get_object_store)) -> AttachmentHelper:
    return AttachmentHelper(settings.attachment_config(), store)


# ─── Current Claims ───────────────────────────────────────────────────────────
def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    sessions: SessionManager = Depends(get_session_manager),
) -> TokenClaims:
    """
    Validate the Bearer access token. Stateless: signature and expiry only,
    no database lookup.
    Raises 401 if the token is missing, invalid, or expired.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")
    return sessions.verify(credentials.credentials)


# ─── Role Guards ──────────────────────────────────────────────────────────────
def require_roles(*roles: RoleName):
    """
    Factory that returns a FastAPI dependency requiring one of the given roles.

    Usage:
        @router.get("/admin-only")
        def admin_route(claims = Depends(require_roles(RoleName.ADMIN))):
            ...
    """
    def dependency(claims: TokenClaims = Depends(get_current_claims)) -> TokenClaims:
        if claims.role not in {r.value for r in roles}:
            raise ForbiddenException(
                f"This action requires one of these roles: {[r.value for r in roles]}"
            )
        return claims
    return dependency


def get_admin_claims(claims: TokenClaims = Depends(require_roles(RoleName.ADMIN))) -> TokenClaims:
    return claims
