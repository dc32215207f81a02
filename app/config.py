from dataclasses import dataclass
from pydantic_settings import BaseSettings
from typing import List, Optional


# ─── Explicit configs handed to the auth / attachment services ─────────────────
@dataclass(frozen=True)
class TokenConfig:
    access_secret:      str
    refresh_secret:     str
    algorithm:          str = "HS256"
    access_ttl_minutes: int = 15
    refresh_ttl_days:   int = 14


@dataclass(frozen=True)
class AttachmentConfig:
    max_size_bytes:     int                  = 5 << 20
    allowed_extensions: frozenset[str]       = frozenset({".pdf", ".jpg", ".jpeg", ".png", ".webp"})
    allowed_mime_types: frozenset[str]       = frozenset({"application/pdf", "image/jpeg", "image/png", "image/webp"})
    max_product_images: int                  = 4


def _split_csv(raw: str) -> frozenset[str]:
    return frozenset(p.strip().lower() for p in raw.split(",") if p.strip())


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME:  str  = "Storefront Admin API"
    APP_ENV:   str  = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str  = "0.0.0.0"
    APP_PORT:  int  = 8080

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── JWT ───────────────────────────────────────────────────────────────────
    JWT_SECRET:               str
    JWT_REFRESH_SECRET:       str
    JWT_ALGORITHM:            str = "HS256"
    ACCESS_TOKEN_TTL_MINUTES: int = 15
    REFRESH_TOKEN_TTL_DAYS:   int = 14

    # ─── Refresh cookie ────────────────────────────────────────────────────────
    COOKIE_SECURE: bool          = True
    COOKIE_DOMAIN: Optional[str] = None

    # ─── Uploads ───────────────────────────────────────────────────────────────
    MAX_UPLOAD_SIZE_MB:      int = 5
    ALLOWED_FILE_EXTENSIONS: str = ".pdf,.jpg,.jpeg,.png,.webp"
    ALLOWED_FILE_MIME_TYPES: str = "application/pdf,image/jpeg,image/png,image/webp"
    MAX_PRODUCT_IMAGES:      int = 4

    # ─── Object storage (S3-compatible, Cloudflare R2) ─────────────────────────
    R2_ENDPOINT:          str = ""
    R2_BUCKET:            str = ""
    R2_ACCESS_KEY_ID:     str = ""
    R2_SECRET_ACCESS_KEY: str = ""
    R2_PUBLIC_DOMAIN:     str = ""
    STORAGE_TIMEOUT_SECONDS: int = 30

    # ─── Pagination ────────────────────────────────────────────────────────────
    DEFAULT_READ_QUERY_LIMIT: int = 20
    READ_QUERY_MAX_LIMIT:     int = 100

    # ─── Admin seed ────────────────────────────────────────────────────────────
    ADMIN_EMAIL:    str = ""
    ADMIN_PASSWORD: str = ""

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def token_config(self) -> TokenConfig:
        return TokenConfig(
            access_secret=self.JWT_SECRET,
            refresh_secret=self.JWT_REFRESH_SECRET,
            algorithm=self.JWT_ALGORITHM,
            access_ttl_minutes=self.ACCESS_TOKEN_TTL_MINUTES if self.ACCESS_TOKEN_TTL_MINUTES > 0 else 15,
            refresh_ttl_days=self.REFRESH_TOKEN_TTL_DAYS if self.REFRESH_TOKEN_TTL_DAYS > 0 else 14,
        )

    def attachment_config(self) -> AttachmentConfig:
        size_mb = self.MAX_UPLOAD_SIZE_MB if self.MAX_UPLOAD_SIZE_MB > 0 else 5
        return AttachmentConfig(
            max_size_bytes=size_mb << 20,
            allowed_extensions=_split_csv(self.ALLOWED_FILE_EXTENSIONS),
            allowed_mime_types=_split_csv(self.ALLOWED_FILE_MIME_TYPES),
            max_product_images=self.MAX_PRODUCT_IMAGES,
        )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
