from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Request

from trustbridge.routers.common import auth_service, render, request_token
from trustbridge.schemas import TransactionIn

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("")
def list_transactions(request: Request):
    return render(auth_service(request).list_records(request_token(request)))


@router.post("")
def upsert_transaction(request: Request, body: Optional[TransactionIn] = Body(default=None)):
    body = body or TransactionIn()
    return render(auth_service(request).upsert_record(request_token(request), body.txId, body.txData))
