"""Shared router helpers: service lookup, bearer extraction, envelope rendering."""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from trustbridge.domain.errors import ErrorKind
from trustbridge.services.auth_service import AuthService, Result
from trustbridge.services.session_service import bearer_token

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.INVALID_KEY: 400,
    ErrorKind.DUPLICATE_USERNAME: 409,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.STORAGE_UNAVAILABLE: 503,
}


def auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise RuntimeError("AuthService not configured")
    return service


def request_token(request: Request) -> str:
    return bearer_token(request.headers.get("authorization"))


def render(result: Result) -> JSONResponse:
    status_code = 200 if result.ok else STATUS_BY_KIND.get(result.kind, 400)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(result.to_envelope(), status_code=status_code, headers=headers)
