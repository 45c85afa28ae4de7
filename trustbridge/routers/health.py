from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from trustbridge.domain.errors import StorageUnavailableError
from trustbridge.routers.common import auth_service

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health(request: Request):
    """Report whether the account store is reachable."""
    store = auth_service(request).store
    if store.ping():
        return {"ok": True, "storage": store.backend}
    payload = {"ok": False, "err": StorageUnavailableError.default_message, "storage": store.backend}
    return JSONResponse(payload, status_code=503)
