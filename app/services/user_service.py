import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User, RoleName
from app.schemas.auth import ChangePasswordRequest
from app.schemas.user import UserCreateRequest
from app.services.auth_service import SessionManager
from app.utils.security import hash_password, verify_password
from app.utils.exceptions import (
    NotFoundException, DuplicateEntryException, InvalidCredentialsException,
    BadRequestException,
)

logger = logging.getLogger(__name__)


def _serialize_user(u: User) -> dict:
    return {
        "id":        u.id,
        "email":     u.email,
        "role":      u.role.value,
        "isActive":  u.isActive,
        "createdAt": u.createdAt.isoformat() if u.createdAt else None,
        "updatedAt": u.updatedAt.isoformat() if u.updatedAt else None,
    }


class UserService:

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_admin(self, db: Session, data: UserCreateRequest) -> dict:
        if db.query(User).filter(User.email == data.email).first():
            raise DuplicateEntryException("Email already registered", field="email")

        u = User(
            email=data.email,
            password=hash_password(data.password),
            role=RoleName.ADMIN,
            isActive=True,
        )
        db.add(u)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race against another insert of the same email
            db.rollback()
            raise DuplicateEntryException("Email already registered", field="email")
        db.refresh(u)
        logger.info(f"Admin user {u.id} created")
        return _serialize_user(u)

    # ─── Change Password ──────────────────────────────────────────────────────
    def change_password(
        self, db: Session, sessions: SessionManager, user_id: int, data: ChangePasswordRequest,
    ) -> int:
        """Store the new hash and revoke every session in the same commit."""
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")
        if not verify_password(data.currentPassword, u.password):
            raise InvalidCredentialsException()
        if data.currentPassword == data.newPassword:
            raise BadRequestException("New password must differ from the current one", field="newPassword")

        u.password = hash_password(data.newPassword)
        return sessions.revoke_all_sessions(db, u.id)

    # ─── Seed ─────────────────────────────────────────────────────────────────
    def ensure_admin(self, db: Session, email: str, password: str) -> bool:
        """Insert the bootstrap admin if it does not exist. Never overwrites."""
        email = email.strip().lower()
        if not email or not password:
            return False
        if db.query(User).filter(User.email == email).first():
            return False

        db.add(User(email=email, password=hash_password(password), role=RoleName.ADMIN, isActive=True))
        db.commit()
        logger.info(f"Seeded admin user {email}")
        return True


user_service = UserService()
