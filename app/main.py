import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.database import SessionLocal, check_db_connection
from app.services.user_service import user_service
from app.utils.exceptions import AppException
from app.middleware.error_handler import (
    app_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    generic_exception_handler,
)

from app.api.v1 import auth
from app.api.v1 import users
from app.api.v1 import categories
from app.api.v1 import products
from app.api.v1 import quote_requests
from app.api.v1 import product_requests

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def seed_admin() -> None:
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL / ADMIN_PASSWORD not set, skipping admin seed")
        return
    db = SessionLocal()
    try:
        user_service.ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    finally:
        db.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Storefront catalog, lead capture and admin API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # ─── CORS ─────────────────────────────────────────────────────────────────
    # Credentials are required for the refresh cookie, so origins must be explicit
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ─── Routers ──────────────────────────────────────────────────────────────
    app.include_router(auth.router,                   tags=["Auth"])
    app.include_router(users.router,                  tags=["Users"])
    app.include_router(categories.router,             tags=["Categories"])
    app.include_router(categories.admin_router,       tags=["Categories"])
    app.include_router(products.router,               tags=["Products"])
    app.include_router(products.admin_router,         tags=["Products"])
    app.include_router(quote_requests.router,         tags=["Quote Requests"])
    app.include_router(quote_requests.admin_router,   tags=["Quote Requests"])
    app.include_router(product_requests.router,       tags=["Product Requests"])
    app.include_router(product_requests.admin_router, tags=["Product Requests"])

    # ─── Startup ──────────────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        ok = check_db_connection()
        logger.info("DB connected" if ok else "DB connection FAILED")
        if ok:
            seed_admin()

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/ping", tags=["Health"])
    def ping():
        return {"message": "pong"}

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
