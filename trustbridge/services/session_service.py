"""Session helpers (issue, rotate, resolve and invalidate bearer tokens)."""
from __future__ import annotations

import secrets
from typing import Optional

from trustbridge.domain.accounts import Account
from trustbridge.domain.errors import UnauthenticatedError
from trustbridge.repositories import AccountStore

TOKEN_BYTES = 32


def bearer_token(header: Optional[str]) -> str:
    """Extract the token from an Authorization header ("Bearer <t>" or a bare token)."""
    value = (header or "").strip()
    scheme, _, rest = value.partition(" ")
    if rest and scheme.lower() == "bearer":
        return rest.strip()
    if value.lower() == "bearer":
        return ""
    return value


class SessionService:
    """
    Single-slot bearer sessions.

    A token carries no identity or expiry of its own; its only authority is
    the store lookup. Logging in again replaces the previous token, which is
    how older sessions get revoked.
    """

    def __init__(self, store: AccountStore) -> None:
        self.store = store

    @staticmethod
    def issue() -> str:
        return secrets.token_hex(TOKEN_BYTES)

    def rotate(self, account: Account) -> str:
        token = self.issue()
        self.store.set_session_token(account.id, token)
        account.session_token = token
        return token

    def resolve(self, token: Optional[str]) -> Account:
        if not token:
            raise UnauthenticatedError("Not logged in.")
        account = self.store.find_by_token(token)
        if account is None:
            raise UnauthenticatedError("Session expired. Please sign in again.")
        return account

    def invalidate(self, account: Account) -> None:
        self.store.set_session_token(account.id, None)
        account.session_token = None
