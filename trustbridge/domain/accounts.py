"""Domain types for accounts, their records and username rules."""
from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Optional

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_]{3,20}")
RESERVED_RECORD_FIELDS = ("id", "updatedAt")


def now_ms() -> int:
    return int(time.time() * 1000)


def new_account_id() -> str:
    return "u_" + secrets.token_hex(8)


def fold_username(value: str | None) -> str:
    """Normalize a username for uniqueness checks and lookups."""
    return (value or "").strip().lower()


def is_valid_username(value: str | None) -> bool:
    if not value:
        return False
    return bool(USERNAME_PATTERN.fullmatch(value))


@dataclass
class Record:
    key: str
    payload: dict[str, Any]
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.key}
        data.update((k, v) for k, v in self.payload.items() if k not in RESERVED_RECORD_FIELDS)
        data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        payload = {k: v for k, v in data.items() if k not in RESERVED_RECORD_FIELDS}
        return cls(key=str(data["id"]), payload=payload, updated_at=int(data.get("updatedAt") or 0))


@dataclass(frozen=True)
class PublicUser:
    id: str
    username: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "username": self.username}


@dataclass
class Account:
    id: str
    username: str
    credential_hash: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)
    created_at: int = field(default_factory=now_ms)
    records: dict[str, Record] = field(default_factory=dict)

    @property
    def username_key(self) -> str:
        return fold_username(self.username)

    def public_view(self) -> PublicUser:
        return PublicUser(id=self.id, username=self.username)
