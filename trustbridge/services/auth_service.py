"""
Authentication and identity related use cases.

AuthService is the only entry point the HTTP layer talks to. Each operation
runs under the store lock (password hashing happens before it is taken)
and returns a typed result: one of the success dataclasses below or a
Failure. Expected problems (bad input, duplicate username, wrong password,
stale token, storage outage) never escape as exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar, Union

from trustbridge.core.security import PASSWORD_MIN_LEN, CredentialService
from trustbridge.domain.accounts import PublicUser, Record, fold_username, is_valid_username
from trustbridge.domain.errors import AuthError, ErrorKind, InvalidCredentialsError
from trustbridge.repositories import AccountStore
from trustbridge.services.record_service import RecordService
from trustbridge.services.session_service import SessionService

logger = logging.getLogger(__name__)

MSG_REGISTER_MISSING = "Both fields are required."
MSG_USERNAME_FORMAT = "Username must be 3-20 characters (letters, numbers, underscores only)."
MSG_PASSWORD_SHORT = f"Password must be at least {PASSWORD_MIN_LEN} characters."
MSG_LOGIN_MISSING = "Please enter your credentials."


@dataclass
class Failure:
    kind: ErrorKind
    message: str
    ok: bool = field(default=False, init=False)

    def to_envelope(self) -> dict:
        return {"ok": False, "err": self.message}


@dataclass
class SessionGranted:
    user: PublicUser
    token: str
    ok: bool = field(default=True, init=False)

    def to_envelope(self) -> dict:
        return {"ok": True, "user": self.user.to_dict(), "token": self.token}


@dataclass
class Identity:
    user: PublicUser
    ok: bool = field(default=True, init=False)

    def to_envelope(self) -> dict:
        return {"ok": True, "user": self.user.to_dict()}


@dataclass
class Availability:
    available: bool
    ok: bool = field(default=True, init=False)

    def to_envelope(self) -> dict:
        return {"ok": True, "available": self.available}


@dataclass
class RecordList:
    records: list[Record]
    ok: bool = field(default=True, init=False)

    def to_envelope(self) -> dict:
        return {"ok": True, "transactions": [record.to_dict() for record in self.records]}


@dataclass
class Done:
    ok: bool = field(default=True, init=False)

    def to_envelope(self) -> dict:
        return {"ok": True}


Result = Union[SessionGranted, Identity, Availability, RecordList, Done, Failure]
T = TypeVar("T")


class AuthService:
    """Handles registration, login, logout, identity and record flows."""

    def __init__(self, store: AccountStore, credentials: CredentialService) -> None:
        self.store = store
        self.credentials = credentials
        self.sessions = SessionService(store)
        self.records = RecordService(store)

    # -------------------------------------- helpers --------------------------------------
    def _run(self, operation: Callable[[], T]) -> Union[T, Failure]:
        try:
            with self.store.locked():
                return operation()
        except AuthError as exc:
            return Failure(kind=exc.kind, message=exc.message)

    # -------------------------------------- registration --------------------------------------
    def register(self, username: Any, password: Any) -> Union[SessionGranted, Failure]:
        if not isinstance(username, str) or not isinstance(password, str) or not username.strip() or not password:
            return Failure(ErrorKind.INVALID_INPUT, MSG_REGISTER_MISSING)
        username = username.strip()
        if not is_valid_username(username):
            return Failure(ErrorKind.INVALID_INPUT, MSG_USERNAME_FORMAT)
        if len(password) < PASSWORD_MIN_LEN:
            return Failure(ErrorKind.INVALID_INPUT, MSG_PASSWORD_SHORT)
        credential_hash = self.credentials.hash(password)

        def _register() -> SessionGranted:
            token = self.sessions.issue()
            account = self.store.create(username, credential_hash, session_token=token)
            logger.info("Registered account %s", account.id)
            return SessionGranted(user=account.public_view(), token=token)

        return self._run(_register)

    def check_username(self, username: Any) -> Union[Availability, Failure]:
        key = fold_username(username) if isinstance(username, str) else ""
        if not key:
            return Availability(available=False)
        return self._run(lambda: Availability(available=self.store.find_by_username(key) is None))

    # -------------------------------------- login / logout --------------------------------------
    def login(self, username: Any, password: Any) -> Union[SessionGranted, Failure]:
        if not isinstance(username, str) or not isinstance(password, str) or not username.strip() or not password:
            return Failure(ErrorKind.INVALID_INPUT, MSG_LOGIN_MISSING)
        # Hashed once, before the lock, whether or not the account exists.
        candidate = self.credentials.hash(password)

        def _login() -> SessionGranted:
            account = self.store.find_by_username(username)
            if account is None or not self.credentials.verify(password, account.credential_hash, candidate=candidate):
                logger.info("Failed login for %r", fold_username(username))
                raise InvalidCredentialsError()
            if self.credentials.needs_rehash(account.credential_hash):
                account.credential_hash = candidate
                self.store.update(account)
                logger.info("Upgraded legacy credential hash for account %s", account.id)
            token = self.sessions.rotate(account)
            logger.info("Account %s logged in", account.id)
            return SessionGranted(user=account.public_view(), token=token)

        return self._run(_login)

    def logout(self, token: Optional[str]) -> Union[Done, Failure]:
        def _logout() -> Done:
            account = self.sessions.resolve(token)
            self.sessions.invalidate(account)
            logger.info("Account %s logged out", account.id)
            return Done()

        return self._run(_logout)

    def whoami(self, token: Optional[str]) -> Union[Identity, Failure]:
        return self._run(lambda: Identity(user=self.sessions.resolve(token).public_view()))

    # -------------------------------------- records --------------------------------------
    def list_records(self, token: Optional[str]) -> Union[RecordList, Failure]:
        return self._run(lambda: RecordList(records=self.records.list(self.sessions.resolve(token))))

    def upsert_record(self, token: Optional[str], key: Any, payload: Any) -> Union[Done, Failure]:
        def _upsert() -> Done:
            account = self.sessions.resolve(token)
            self.records.upsert(account, key, payload)
            return Done()

        return self._run(_upsert)

