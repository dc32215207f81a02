import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import TokenConfig
from app.utils.exceptions import InvalidOrExpiredTokenException

# ─── Password Hashing ─────────────────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password using bcrypt."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Burn one hash verification so unknown emails cost the same as bad passwords."""
    pwd_context.dummy_verify()


# ─── JWT ──────────────────────────────────────────────────────────────────────
def create_access_token(cfg: TokenConfig, user_id: int, email: str, role: str) -> str:
    """
    Create a short-lived JWT access token.
    Payload: sub (user_id), email, role, type, exp
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=cfg.access_ttl_minutes)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, cfg.access_secret, algorithm=cfg.algorithm)


def create_refresh_token(cfg: TokenConfig, user_id: int) -> tuple[str, datetime]:
    """
    Create a long-lived JWT refresh token.
    Returns (token_string, expiry_datetime). The jti keeps two tokens minted
    for the same user within the same second distinct.
    """
    expire = datetime.now(timezone.utc) + timedelta(days=cfg.refresh_ttl_days)
    payload = {
        "sub": str(user_id),
        "type": "refresh",
        "jti": uuid.uuid4().hex,
        "exp": expire,
    }
    token = jwt.encode(payload, cfg.refresh_secret, algorithm=cfg.algorithm)
    return token, expire


def decode_access_token(cfg: TokenConfig, token: str) -> dict:
    """
    Decode and validate a JWT access token.
    Every failure (bad signature, expired, wrong type) raises the same 401.
    """
    try:
        payload = jwt.decode(
            token, cfg.access_secret, algorithms=[cfg.algorithm], options={"require_exp": True},
        )
    except JWTError:
        raise InvalidOrExpiredTokenException()
    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidOrExpiredTokenException()
    return payload
