"""
Configuration helpers for the TrustBridge backend.

Exposes a Settings object that reads environment variables (storage backend,
database URL, credential pepper, rate limits, etc.) so that routers/services
do not fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_PEPPER = "dev-pepper-change-me"
STORAGE_BACKENDS = ("sql", "json")


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    storage_backend: str
    data_dir: str
    database_url: str
    password_pepper: str
    legacy_password_salt: str
    cors_origins: tuple[str, ...]
    log_level: str
    rate_limit_enabled: bool
    trust_forwarded_for: bool
    login_rate_limit: int
    login_rate_window: int
    register_rate_limit: int
    register_rate_window: int
    host: str
    port: int

    @property
    def json_store_path(self) -> str:
        return os.path.join(self.data_dir, "users.json")


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    def _csv(value: str | None) -> tuple[str, ...]:
        return tuple(item.strip() for item in (value or "").split(",") if item.strip())

    data_dir = os.getenv("DATA_DIR") or os.path.join(".", "data")
    backend = (os.getenv("STORAGE_BACKEND") or "sql").strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise RuntimeError(f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, got {backend!r}.")
    default_url = "sqlite:///" + os.path.join(data_dir, "trustbridge.db")

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        storage_backend=backend,
        data_dir=data_dir,
        database_url=(os.getenv("DATABASE_URL") or default_url).strip(),
        password_pepper=os.getenv("PASSWORD_PEPPER") or DEFAULT_PEPPER,
        legacy_password_salt=os.getenv("LEGACY_PASSWORD_SALT", ""),
        cors_origins=_csv(os.getenv("CORS_ORIGINS", "*")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        rate_limit_enabled=_bool(os.getenv("RATE_LIMIT_ENABLED"), True),
        trust_forwarded_for=_bool(os.getenv("TRUST_FORWARDED_FOR"), False),
        login_rate_limit=_int(os.getenv("LOGIN_RATE_LIMIT", "10"), 10),
        login_rate_window=_int(os.getenv("LOGIN_RATE_WINDOW", "60"), 60),
        register_rate_limit=_int(os.getenv("REGISTER_RATE_LIMIT", "5"), 5),
        register_rate_window=_int(os.getenv("REGISTER_RATE_WINDOW", "300"), 300),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int(os.getenv("PORT", "3000"), 3000),
    )
