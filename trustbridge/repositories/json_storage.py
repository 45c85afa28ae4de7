"""
JSON-file account store.

Keeps the legacy users.json layout so existing data files can be served
as-is (or migrated to SQL with scripts/migrate_json_to_sql.py):

    {"u_...": {"id", "username", "password", "token", "createdAt", "transactions": [...]}}

The whole document is cached in memory; every write goes to a temporary file
that replaces the original, so a failed write leaves both copies untouched.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from trustbridge.domain.accounts import Account, Record, fold_username, new_account_id, now_ms
from trustbridge.domain.errors import DuplicateUsernameError, StorageUnavailableError, UnauthenticatedError

logger = logging.getLogger(__name__)


def load(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not hold a JSON object")
    return data


def save(path: Path, db: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(db, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, path)


def _to_domain(entry: dict) -> Account:
    return Account(
        id=entry["id"],
        username=entry["username"],
        credential_hash=entry.get("password") or "",
        session_token=entry.get("token") or None,
        created_at=int(entry.get("createdAt") or 0),
        records={
            str(item["id"]): Record.from_dict(copy.deepcopy(item))
            for item in entry.get("transactions") or []
            if isinstance(item, dict) and item.get("id") not in (None, "")
        },
    )


def _to_entry(account: Account) -> dict:
    return {
        "id": account.id,
        "username": account.username,
        "password": account.credential_hash,
        "token": account.session_token,
        "createdAt": account.created_at,
        "transactions": [copy.deepcopy(record.to_dict()) for record in account.records.values()],
    }


class JSONAccountStore:
    backend = "json"

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        try:
            users = load(self.path)
            if not self.path.exists():
                save(self.path, users)
        except (OSError, ValueError) as exc:
            logger.exception("Could not open JSON store at %s", self.path)
            raise StorageUnavailableError() from exc
        for uid, entry in users.items():
            entry.setdefault("id", uid)
        self._users: dict[str, dict] = users
        self._reindex()

    def _reindex(self) -> None:
        self._by_name = {fold_username(e.get("username")): uid for uid, e in self._users.items()}
        self._by_token = {e["token"]: uid for uid, e in self._users.items() if e.get("token")}

    def _write(self, users: dict) -> None:
        try:
            save(self.path, users)
        except OSError as exc:
            logger.exception("Could not write JSON store at %s", self.path)
            raise StorageUnavailableError() from exc
        self._users = users
        self._reindex()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def find_by_username(self, username: str) -> Optional[Account]:
        key = fold_username(username)
        if not key:
            return None
        with self._lock:
            uid = self._by_name.get(key)
            return _to_domain(self._users[uid]) if uid else None

    def find_by_token(self, token: Optional[str]) -> Optional[Account]:
        if not token:
            return None
        with self._lock:
            uid = self._by_token.get(token)
            return _to_domain(self._users[uid]) if uid else None

    def accounts(self) -> list[Account]:
        with self._lock:
            entries = sorted(self._users.values(), key=lambda e: (int(e.get("createdAt") or 0), e["id"]))
            return [_to_domain(entry) for entry in entries]

    def ping(self) -> bool:
        return os.access(self.path.parent, os.W_OK)

    def create(self, username: str, credential_hash: str, *, session_token: Optional[str] = None) -> Account:
        with self._lock:
            if fold_username(username) in self._by_name:
                raise DuplicateUsernameError()
            account = Account(
                id=new_account_id(),
                username=username,
                credential_hash=credential_hash,
                session_token=session_token,
                created_at=now_ms(),
            )
            staged = dict(self._users)
            staged[account.id] = _to_entry(account)
            self._write(staged)
            return account

    def update(self, account: Account) -> None:
        """Persist hash and records, keeping whatever token is stored."""
        with self._lock:
            current = self._users.get(account.id)
            if current is None:
                raise UnauthenticatedError("User not found.")
            entry = _to_entry(account)
            entry["token"] = current.get("token")
            staged = dict(self._users)
            staged[account.id] = entry
            self._write(staged)

    def set_session_token(self, account_id: str, token: Optional[str]) -> None:
        with self._lock:
            current = self._users.get(account_id)
            if current is None:
                raise UnauthenticatedError("User not found.")
            owner = self._by_token.get(token) if token else None
            if owner and owner != account_id:
                raise StorageUnavailableError("Session token collision.")
            staged = dict(self._users)
            staged[account_id] = {**current, "token": token}
            self._write(staged)

    def close(self) -> None:
        """Nothing to release; every write is already on disk."""
