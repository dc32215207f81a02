import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import TokenConfig, settings
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.utils.security import (
    verify_password, dummy_verify,
    create_access_token, create_refresh_token, decode_access_token,
)
from app.utils.exceptions import (
    InvalidCredentialsException, AccountInactiveException,
    InvalidOrExpiredTokenException, RotationFailedException,
    PersistenceFailedException,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    user_id:    int
    email:      str
    role:       str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """
    Issues, verifies and rotates sessions.

    Access tokens are stateless JWTs checked on every admin request. Refresh
    tokens are JWTs too, but they only count while their `refresh_tokens` row
    is active (not revoked, not expired); each successful refresh revokes the
    presented row and inserts its successor.
    """

    def __init__(self, cfg: TokenConfig):
        self.cfg = cfg

    @property
    def access_ttl_seconds(self) -> int:
        return self.cfg.access_ttl_minutes * 60

    @property
    def refresh_ttl_seconds(self) -> int:
        return self.cfg.refresh_ttl_days * 24 * 3600

    def _access_for(self, user: User) -> str:
        return create_access_token(self.cfg, user.id, user.email, user.role.value)

    # ─── Login ────────────────────────────────────────────────────────────────
    def authenticate(self, db: Session, email: str, password: str) -> tuple[str, RefreshToken]:
        email = email.strip().lower()
        user = db.query(User).filter(User.email == email).first()

        if not user:
            dummy_verify()
            raise InvalidCredentialsException()
        if not verify_password(password, user.password):
            raise InvalidCredentialsException()
        if not user.isActive:
            raise AccountInactiveException()

        token, expires = create_refresh_token(self.cfg, user.id)
        record = RefreshToken(
            userId=user.id,
            token=token,
            expiresAt=expires,
            createdAt=_utcnow(),
        )
        db.add(record)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Could not persist refresh token for user {user.id}")
            raise PersistenceFailedException()

        logger.info(f"User {user.id} logged in")
        return self._access_for(user), record

    # ─── Refresh (rotation) ───────────────────────────────────────────────────
    def refresh(self, db: Session, presented: str | None) -> tuple[str, RefreshToken]:
        if not presented:
            raise InvalidOrExpiredTokenException()

        now = _utcnow()
        stored = db.query(RefreshToken).filter(
            RefreshToken.token == presented,
            RefreshToken.revokedAt.is_(None),
            RefreshToken.expiresAt > now,
        ).first()
        if not stored:
            raise InvalidOrExpiredTokenException()

        user = db.query(User).filter(User.id == stored.userId).first()
        if not user:
            raise InvalidOrExpiredTokenException()
        if not user.isActive:
            raise AccountInactiveException()

        # 1) Mint successor
        new_token, new_expires = create_refresh_token(self.cfg, user.id)

        # 2) Revoke the presented token first. Conditional on it still being
        #    unrevoked so two concurrent refreshes cannot both rotate it.
        try:
            matched = db.query(RefreshToken).filter(
                RefreshToken.id == stored.id,
                RefreshToken.revokedAt.is_(None),
            ).update({"revokedAt": now, "replacedBy": new_token}, synchronize_session=False)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Refresh token {stored.id}: revoke failed, token left usable")
            raise RotationFailedException()

        if matched == 0:
            raise InvalidOrExpiredTokenException()

        # 3) Store successor. Failing here strands the session (fail closed).
        record = RefreshToken(
            userId=user.id,
            token=new_token,
            expiresAt=new_expires,
            createdAt=now,
        )
        db.add(record)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Refresh token {stored.id}: revoked but successor not stored, user {user.id} must login again")
            raise RotationFailedException()

        # 4) Fresh access token
        return self._access_for(user), record

    # ─── Logout ───────────────────────────────────────────────────────────────
    def logout(self, db: Session, presented: str | None) -> bool:
        """
        Best effort: returns whether a record was revoked. Never raises, the
        caller clears the cookie whatever happens here.
        """
        if not presented:
            return False
        try:
            matched = db.query(RefreshToken).filter(
                RefreshToken.token == presented,
                RefreshToken.revokedAt.is_(None),
            ).update({"revokedAt": _utcnow()}, synchronize_session=False)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Logout: could not revoke refresh token", exc_info=True)
            return False
        return matched > 0

    # ─── Revoke all ───────────────────────────────────────────────────────────
    def revoke_all_sessions(self, db: Session, user_id: int) -> int:
        """
        Revoke every active refresh token of the user and commit, together
        with whatever the caller already staged on `db` (password change).
        """
        now = _utcnow()
        try:
            count = db.query(RefreshToken).filter(
                RefreshToken.userId == user_id,
                RefreshToken.revokedAt.is_(None),
                RefreshToken.expiresAt > now,
            ).update({"revokedAt": now}, synchronize_session=False)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Could not revoke sessions of user {user_id}")
            raise PersistenceFailedException()
        logger.info(f"Revoked {count} session(s) of user {user_id}")
        return count

    # ─── Verify ───────────────────────────────────────────────────────────────
    def verify(self, access_token: str) -> TokenClaims:
        payload = decode_access_token(self.cfg, access_token)
        try:
            user_id = int(payload["sub"])
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (KeyError, TypeError, ValueError, OverflowError):
            raise InvalidOrExpiredTokenException()
        return TokenClaims(
            user_id=user_id,
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            expires_at=expires_at,
        )


session_manager = SessionManager(settings.token_config())
