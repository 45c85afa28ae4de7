from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from trustbridge import __version__
from trustbridge.core.config import DEFAULT_PEPPER, Settings, get_settings
from trustbridge.core.log import configure_logging
from trustbridge.core.rate_limiter import RateLimiter
from trustbridge.core.security import CredentialService
from trustbridge.repositories import AccountStore, open_store
from trustbridge.routers import auth as auth_router
from trustbridge.routers import health as health_router
from trustbridge.routers import transactions as transactions_router
from trustbridge.services.auth_service import AuthService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers for a JSON-only API."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    store = app.state.injected_store
    owns_store = store is None
    if owns_store:
        store = open_store(settings)
    app.state.auth_service = AuthService(
        store,
        CredentialService(settings.password_pepper, settings.legacy_password_salt),
    )
    logger.info("TrustBridge %s started (storage=%s)", __version__, store.backend)
    try:
        yield
    finally:
        if owns_store:
            store.close()
        logger.info("TrustBridge stopped")


async def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"ok": False, "err": str(exc.detail)}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def _validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse({"ok": False, "err": "Invalid request body."}, status_code=400)


def create_app(settings: Optional[Settings] = None, store: Optional[AccountStore] = None) -> FastAPI:
    """Build the API; the store is opened at startup unless one is injected."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if settings.app_env == "prod" and settings.password_pepper == DEFAULT_PEPPER:
        logger.warning("PASSWORD_PEPPER is not set; using the development default in prod")

    app = FastAPI(title="TrustBridge API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.injected_store = store
    app.state.rate_limiter = RateLimiter()

    origins = list(settings.cors_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    app.include_router(auth_router.router)
    app.include_router(transactions_router.router)
    app.include_router(health_router.router)
    return app
