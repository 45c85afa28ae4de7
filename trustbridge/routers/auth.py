from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Request

from trustbridge.core.rate_limiter import rate_limit_ip
from trustbridge.routers.common import auth_service, render, request_token
from trustbridge.schemas import CredentialsIn

router = APIRouter(prefix="/api", tags=["auth"])


def _limit(request: Request, scope: str) -> None:
    settings = request.app.state.settings
    if not settings.rate_limit_enabled:
        return
    if scope == "login":
        rate_limit_ip(request, "auth:login", limit=settings.login_rate_limit, window_seconds=settings.login_rate_window)
    else:
        rate_limit_ip(request, "auth:register", limit=settings.register_rate_limit, window_seconds=settings.register_rate_window)


@router.post("/register")
def register(request: Request, body: Optional[CredentialsIn] = Body(default=None)):
    _limit(request, "register")
    body = body or CredentialsIn()
    return render(auth_service(request).register(body.username, body.password))


@router.post("/login")
def login(request: Request, body: Optional[CredentialsIn] = Body(default=None)):
    _limit(request, "login")
    body = body or CredentialsIn()
    return render(auth_service(request).login(body.username, body.password))


@router.post("/logout")
def logout(request: Request):
    return render(auth_service(request).logout(request_token(request)))


@router.get("/me")
def me(request: Request):
    return render(auth_service(request).whoami(request_token(request)))


@router.get("/check-username")
def check_username(request: Request, username: str = ""):
    return render(auth_service(request).check_username(username))
