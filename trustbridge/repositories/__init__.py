"""
Persistence adapters.

Two interchangeable account stores live here: SQL (default) and a single
JSON document compatible with the legacy users.json layout. Services depend
on the AccountStore interface rather than on either backend.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Optional, Protocol

from trustbridge.core.config import Settings
from trustbridge.domain.accounts import Account


class AccountStore(Protocol):
    backend: str

    def locked(self) -> AbstractContextManager: ...

    def create(self, username: str, credential_hash: str, *, session_token: Optional[str] = None) -> Account: ...

    def find_by_username(self, username: str) -> Optional[Account]: ...

    def find_by_token(self, token: Optional[str]) -> Optional[Account]: ...

    def update(self, account: Account) -> None: ...

    def set_session_token(self, account_id: str, token: Optional[str]) -> None: ...

    def accounts(self) -> list[Account]: ...

    def ping(self) -> bool: ...

    def close(self) -> None: ...


def open_store(settings: Settings) -> AccountStore:
    """Build the store selected by STORAGE_BACKEND."""
    if settings.storage_backend == "json":
        from trustbridge.repositories.json_storage import JSONAccountStore

        return JSONAccountStore(settings.json_store_path)
    from trustbridge.repositories.sql_repository import SQLAccountStore

    return SQLAccountStore(settings.database_url)
