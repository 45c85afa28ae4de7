"""Per-account keyed records ("transactions") with upsert semantics."""

from __future__ import annotations

from typing import Any, Callable, Optional

from trustbridge.domain.accounts import Account, Record, RESERVED_RECORD_FIELDS, now_ms
from trustbridge.domain.errors import InvalidInputError, InvalidKeyError
from trustbridge.repositories import AccountStore


class RecordService:
    """Creates or replaces records on an already-authenticated account."""

    def __init__(self, store: AccountStore, clock: Callable[[], int] = now_ms) -> None:
        self.store = store
        self.clock = clock

    def upsert(self, account: Account, key: Any, payload: Optional[Any]) -> Record:
        if not isinstance(key, str) or not key:
            raise InvalidKeyError()
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise InvalidInputError("txData must be an object.")
        now = self.clock()
        previous = account.records.get(key)
        if previous is not None and now <= previous.updated_at:
            now = previous.updated_at + 1
        record = Record(
            key=key,
            payload={k: v for k, v in payload.items() if k not in RESERVED_RECORD_FIELDS},
            updated_at=now,
        )
        # assignment to an existing key keeps its position in the mapping
        account.records[key] = record
        self.store.update(account)
        return record

    def list(self, account: Account) -> list[Record]:
        return list(account.records.values())
