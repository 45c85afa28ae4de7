"""Credential hashing and verification."""

from __future__ import annotations

import hashlib
import re
import secrets

from argon2.low_level import Type, hash_secret_raw

_PREFIX = "argon2id$"
_LEGACY_PATTERN = re.compile(r"[0-9a-f]{64}")

# Fixed cost parameters; changing them invalidates every stored hash.
TIME_COST = 2
MEMORY_COST = 19456
PARALLELISM = 1
HASH_LEN = 32

PASSWORD_MIN_LEN = 6


class CredentialService:
    """
    Deterministic peppered password hashing.

    The same password always yields the same hash for a given pepper, so
    verification is a constant-time comparison of two hashes. Accounts
    imported from the legacy JSON store carry SHA-256 hex digests; those are
    accepted when ``legacy_salt`` is configured and flagged by
    :meth:`needs_rehash` so the caller can upgrade them after a login.
    """

    def __init__(self, pepper: str, legacy_salt: str = "") -> None:
        if not pepper:
            raise ValueError("pepper must be non-empty")
        self._salt = hashlib.sha256(pepper.encode("utf-8")).digest()
        self._legacy_salt = legacy_salt or ""

    def hash(self, password: str) -> str:
        raw = hash_secret_raw(
            password.encode("utf-8"),
            self._salt,
            time_cost=TIME_COST,
            memory_cost=MEMORY_COST,
            parallelism=PARALLELISM,
            hash_len=HASH_LEN,
            type=Type.ID,
        )
        return f"{_PREFIX}{raw.hex()}"

    def _legacy_hash(self, password: str) -> str:
        return hashlib.sha256((password + self._legacy_salt).encode("utf-8")).hexdigest()

    def verify(self, password: str, stored_hash: str | None, *, candidate: str | None = None) -> bool:
        """Check ``password`` against ``stored_hash``.

        ``candidate`` is ``hash(password)`` when the caller already computed it.
        """
        stored = stored_hash or ""
        if stored.startswith(_PREFIX):
            return secrets.compare_digest(candidate or self.hash(password), stored)
        if self._legacy_salt and _LEGACY_PATTERN.fullmatch(stored):
            return secrets.compare_digest(self._legacy_hash(password), stored)
        return False

    def needs_rehash(self, stored_hash: str | None) -> bool:
        return not (stored_hash or "").startswith(_PREFIX)
