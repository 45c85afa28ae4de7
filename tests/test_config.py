from __future__ import annotations

import pytest

from trustbridge.core import config as core_config
from trustbridge.core.config import DEFAULT_PEPPER
from trustbridge.repositories import open_store
from trustbridge.repositories.json_storage import JSONAccountStore
from trustbridge.repositories.sql_repository import SQLAccountStore


@pytest.fixture()
def fresh_settings(monkeypatch):
    for name in ("APP_ENV", "STORAGE_BACKEND", "DATABASE_URL", "DATA_DIR", "PASSWORD_PEPPER", "CORS_ORIGINS", "RATE_LIMIT_ENABLED", "TRUST_FORWARDED_FOR", "PORT"):
        monkeypatch.delenv(name, raising=False)
    core_config.get_settings.cache_clear()
    yield core_config.get_settings
    core_config.get_settings.cache_clear()


def test_defaults(fresh_settings):
    settings = fresh_settings()
    assert settings.app_env == "dev"
    assert settings.storage_backend == "sql"
    assert settings.database_url.startswith("sqlite:///")
    assert settings.database_url.endswith("trustbridge.db")
    assert settings.password_pepper == DEFAULT_PEPPER
    assert settings.cors_origins == ("*",)
    assert settings.rate_limit_enabled is True
    assert settings.trust_forwarded_for is False
    assert settings.port == 3000


def test_environment_overrides(fresh_settings, monkeypatch, tmp_path):
    monkeypatch.setenv("APP_ENV", "PROD")
    monkeypatch.setenv("STORAGE_BACKEND", "json")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "off")
    monkeypatch.setenv("TRUST_FORWARDED_FOR", "yes")
    monkeypatch.setenv("PORT", "not-a-number")
    settings = fresh_settings()
    assert settings.app_env == "prod"
    assert settings.storage_backend == "json"
    assert settings.json_store_path == str(tmp_path / "users.json")
    assert settings.cors_origins == ("https://a.example", "https://b.example")
    assert settings.rate_limit_enabled is False
    assert settings.trust_forwarded_for is True
    assert settings.port == 3000


def test_unknown_backend_is_rejected(fresh_settings, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "redis")
    with pytest.raises(RuntimeError):
        fresh_settings()


def test_open_store_follows_backend(fresh_settings, monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    sql_store = open_store(fresh_settings())
    assert isinstance(sql_store, SQLAccountStore)
    sql_store.close()
    assert (tmp_path / "trustbridge.db").exists()

    monkeypatch.setenv("STORAGE_BACKEND", "json")
    core_config.get_settings.cache_clear()
    json_store = open_store(fresh_settings())
    assert isinstance(json_store, JSONAccountStore)
    json_store.close()


def test_create_tables_script(tmp_path):
    from sqlalchemy import create_engine, inspect

    from trustbridge.db.create_tables import create_all

    url = f"sqlite:///{tmp_path / 'schema.db'}"
    create_all(url)
    engine = create_engine(url)
    try:
        assert {"users", "transactions"} <= set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_app_factory_exposes_app(fresh_settings):
    from trustbridge import app_factory

    assert app_factory.app.title == "TrustBridge API"
    assert app_factory.app.state.injected_store is None
