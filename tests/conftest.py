from __future__ import annotations

import dataclasses
import sys
from pathlib import Path

import pytest

# Make the trustbridge package importable during local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from trustbridge.app import create_app  # noqa: E402
from trustbridge.core import config as core_config  # noqa: E402
from trustbridge.core.security import CredentialService  # noqa: E402
from trustbridge.repositories.json_storage import JSONAccountStore  # noqa: E402
from trustbridge.repositories.sql_repository import SQLAccountStore  # noqa: E402
from trustbridge.services.auth_service import AuthService  # noqa: E402

PEPPER = "test-pepper"
LEGACY_SALT = "legacy_salt_for_tests"


@pytest.fixture()
def open_backend(tmp_path):
    """Return a factory that (re)opens a store of the given backend on the same files."""
    opened = []

    def _open(backend: str):
        if backend == "sql":
            store = SQLAccountStore(f"sqlite:///{tmp_path / 'test.db'}")
        else:
            store = JSONAccountStore(tmp_path / "users.json")
        opened.append(store)
        return store

    yield _open
    for store in opened:
        store.close()


@pytest.fixture(params=["sql", "json"])
def store(request, open_backend):
    return open_backend(request.param)


@pytest.fixture()
def credentials():
    return CredentialService(PEPPER, LEGACY_SALT)


@pytest.fixture()
def service(store, credentials):
    return AuthService(store, credentials)


@pytest.fixture()
def settings(tmp_path, monkeypatch):
    """Settings pointing at a temporary data dir, with rate limiting off."""
    monkeypatch.delenv("STORAGE_BACKEND", raising=False)
    core_config.get_settings.cache_clear()
    base = core_config.get_settings()
    core_config.get_settings.cache_clear()
    return dataclasses.replace(
        base,
        storage_backend="sql",
        data_dir=str(tmp_path),
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        password_pepper=PEPPER,
        legacy_password_salt="",
        cors_origins=("*",),
        rate_limit_enabled=False,
    )


@pytest.fixture()
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
