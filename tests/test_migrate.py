from __future__ import annotations

import hashlib
import json
import sys
from pathlib import Path

import pytest

from trustbridge.core.security import CredentialService
from trustbridge.repositories.sql_repository import SQLAccountStore
from trustbridge.services.auth_service import AuthService

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "scripts"))

import migrate_json_to_sql  # noqa: E402

SALT = "tb_legacy_salt"


def _legacy_file(path: Path) -> Path:
    def legacy_hash(pw: str) -> str:
        return hashlib.sha256((pw + SALT).encode("utf-8")).hexdigest()

    data = {
        "u_1": {
            "id": "u_1",
            "username": "bob",
            "password": legacy_hash("secret1"),
            "token": "tok-bob",
            "createdAt": 1,
            "transactions": [{"id": "a", "amt": 9, "updatedAt": 5}],
        },
        "u_2": {
            "id": "u_2",
            "username": "Bob",
            "password": legacy_hash("other12"),
            "token": None,
            "createdAt": 2,
            "transactions": [],
        },
        "u_3": {
            "id": "u_3",
            "username": "alice",
            "password": legacy_hash("secret2"),
            "token": None,
            "createdAt": 3,
        },
    }
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_migrate_imports_accounts_and_skips_case_duplicates(tmp_path):
    source = _legacy_file(tmp_path / "users.json")
    url = f"sqlite:///{tmp_path / 'migrated.db'}"

    imported, skipped = migrate_json_to_sql.migrate(str(source), url)
    assert (imported, skipped) == (2, 1)

    store = SQLAccountStore(url)
    try:
        bob = store.find_by_token("tok-bob")
        assert bob.id == "u_1"
        assert bob.records["a"].to_dict() == {"id": "a", "amt": 9, "updatedAt": 5}
        assert [a.username for a in store.accounts()] == ["bob", "alice"]

        service = AuthService(store, CredentialService("pepper", legacy_salt=SALT))
        assert service.login("ALICE", "secret2").ok
        assert service.login("bob", "other12").ok is False
    finally:
        store.close()


def test_migrate_requires_source(tmp_path):
    with pytest.raises(SystemExit):
        migrate_json_to_sql.migrate(str(tmp_path / "missing.json"), f"sqlite:///{tmp_path / 'x.db'}")
