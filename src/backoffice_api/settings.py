"""Back-office API settings (conventional Pydantic v2)."""

from __future__ import annotations

import json
import secrets
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any
from urllib.parse import urlparse

from pydantic import Field, PrivateAttr, SecretStr, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import make_url

# ---- Defaults ---------------------------------------------------------------

MODULE_DIR = Path(__file__).resolve().parent

DEFAULT_STORAGE_ROOT = Path("./data")
DEFAULT_PUBLIC_URL = "http://localhost:8000"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173"]
DEFAULT_DB_FILENAME = "backoffice.sqlite"
DEFAULT_SQLITE_PATH = DEFAULT_STORAGE_ROOT / "db" / DEFAULT_DB_FILENAME
DEFAULT_ALEMBIC_MIGRATIONS = MODULE_DIR / "migrations"

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


# ---- Helpers ----------------------------------------------------------------

def _parse_duration(value: Any, *, field_name: str) -> timedelta:
    """Accept seconds (int/float/str) or '60s'/'5m'/'1h'/'14d'."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError(f"{field_name} must not be blank")
        try:
            seconds = float(s)
        except ValueError:
            unit = s[-1].lower()
            num = s[:-1].strip()
            if unit not in _UNIT_SECONDS or not num:
                raise ValueError(
                    f"{field_name} must be secs or 'Xs','Xm','Xh','Xd'"
                ) from None
            try:
                seconds = float(num) * _UNIT_SECONDS[unit]
            except ValueError as exc:
                raise ValueError(
                    f"{field_name} must be secs or 'Xs','Xm','Xh','Xd'"
                ) from exc
    else:
        raise TypeError(f"{field_name} must be number, duration string, or timedelta")
    if seconds <= 0:
        raise ValueError(f"{field_name} must be > 0 seconds")
    return timedelta(seconds=seconds)


def _list_from_env(value: Any, *, default: list[str]) -> list[str]:
    """JSON array or comma string; strip empties; dedupe preserving order."""
    if value in (None, "", []):
        items = list(default)
    elif isinstance(value, str):
        s = value.strip()
        if s.startswith("["):
            try:
                parsed = json.loads(s)
            except json.JSONDecodeError as exc:
                raise ValueError("Expected a JSON array") from exc
            if not isinstance(parsed, list):
                raise ValueError("Expected a JSON array")
            items = [str(x).strip() for x in parsed if str(x).strip()]
        else:
            items = [seg.strip() for seg in s.split(",") if seg.strip()]
    elif isinstance(value, (list, tuple, set)):
        items = [str(x).strip() for x in value if str(x).strip()]
    else:
        raise TypeError("Expected string or list")

    seen, out = set(), []
    for x in items:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out


def _local_path(value: Any, *, field_name: str) -> str:
    s = str(value or "").strip()
    if not s.startswith("/") or s.startswith("//"):
        raise ValueError(f"{field_name} must be a local path starting with '/'")
    return s


# ---- Settings ---------------------------------------------------------------

class Settings(BaseSettings):
    """FastAPI settings loaded from BACKOFFICE_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BACKOFFICE_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    _secret_generated: bool = PrivateAttr(default=False)

    # Core
    app_name: str = "Back-office API"
    app_version: str = "0.1.0"
    api_docs_enabled: bool = False
    logging_level: str = "INFO"

    # Server
    server_public_url: str = DEFAULT_PUBLIC_URL
    server_cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    # Browser navigation targets used by redirects
    home_path: str = "/"
    dashboard_path: str = "/dashboard"
    login_path: str = "/login"
    register_path: str = "/register"

    # Database
    database_dsn: str | None = None
    database_echo: bool = False
    database_pool_size: int = Field(5, ge=1)
    database_max_overflow: int = Field(10, ge=0)
    database_pool_timeout: int = Field(30, gt=0)
    alembic_migrations_dir: Path = Field(default=DEFAULT_ALEMBIC_MIGRATIONS)

    # Signing
    secret_key: SecretStr | None = Field(
        default=None,
        description="Secret used to sign session, flash and intended-URL cookies.",
    )
    jwt_algorithm: str = "HS256"
    session_ttl: timedelta = Field(default=timedelta(hours=8))
    flash_ttl: timedelta = Field(default=timedelta(minutes=5))

    # Sessions
    session_cookie_name: str = "backoffice_session"
    session_csrf_cookie_name: str = "backoffice_csrf"
    flash_cookie_name: str = "backoffice_flash"
    intended_cookie_name: str = "backoffice_intended"
    session_cookie_domain: str | None = None
    session_cookie_path: str = "/"

    # Auth policy
    password_min_length: int = Field(8, ge=6, le=128)
    failed_login_lock_threshold: int = Field(5, ge=1)
    failed_login_lock_duration: timedelta = Field(default=timedelta(minutes=5))

    # Dashboard
    low_stock_threshold: int = Field(10, ge=0)
    abandoned_cart_after: timedelta = Field(default=timedelta(days=7))

    # ---- Validators ----

    @field_validator("server_public_url", mode="before")
    @classmethod
    def _v_public_url(cls, v: Any) -> str:
        s = str(v).strip()
        p = urlparse(s)
        if p.scheme not in {"http", "https"} or not p.netloc:
            raise ValueError("BACKOFFICE_SERVER_PUBLIC_URL must be an http(s) URL")
        return s.rstrip("/")

    @field_validator("logging_level", mode="before")
    @classmethod
    def _v_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v).strip()).upper()
        return s or "INFO"

    @field_validator("server_cors_origins", mode="before")
    @classmethod
    def _v_cors(cls, v: Any) -> list[str]:
        return _list_from_env(v, default=DEFAULT_CORS_ORIGINS)

    @field_validator("home_path", "dashboard_path", "login_path", "register_path", mode="before")
    @classmethod
    def _v_paths(cls, v: Any, info: ValidationInfo) -> str:
        return _local_path(v, field_name=info.field_name)

    @field_validator("secret_key", mode="before")
    @classmethod
    def _v_secret_key(cls, v: Any) -> SecretStr | None:
        if v is None:
            return None  # handled in finalize
        raw = v.get_secret_value() if isinstance(v, SecretStr) else str(v or "").strip()
        if raw and len(raw) < 32:
            raise ValueError(
                "BACKOFFICE_SECRET_KEY must be at least 32 characters. Use a long random string."
            )
        return SecretStr(raw) if raw else None

    @field_validator(
        "session_ttl",
        "flash_ttl",
        "failed_login_lock_duration",
        "abandoned_cart_after",
        mode="before",
    )
    @classmethod
    def _v_durations(cls, v: Any, info: ValidationInfo) -> timedelta:
        return _parse_duration(v, field_name=info.field_name)

    # ---- Finalize: resolve database + secret ----

    @model_validator(mode="after")
    def _finalize(self) -> Settings:
        self.alembic_migrations_dir = Path(self.alembic_migrations_dir).expanduser().resolve()

        if not self.database_dsn:
            sqlite = DEFAULT_SQLITE_PATH.expanduser().resolve()
            self.database_dsn = f"sqlite+aiosqlite:///{sqlite.as_posix()}"

        url = make_url(self.database_dsn)
        if url.get_backend_name() == "sqlite" and url.drivername == "sqlite":
            url = url.set(drivername="sqlite+aiosqlite")
        self.database_dsn = url.render_as_string(hide_password=False)

        if self.secret_key is None or not self.secret_key.get_secret_value().strip():
            self.secret_key = SecretStr(secrets.token_urlsafe(64))
            self._secret_generated = True

        return self

    # ---- Convenience ----

    @property
    def secret_key_value(self) -> str:
        return self.secret_key.get_secret_value()

    @property
    def secret_key_generated(self) -> bool:
        return self._secret_generated

    @property
    def secure_cookies(self) -> bool:
        return self.server_public_url.lower().startswith("https://")


@lru_cache(maxsize=1)
def _build_settings() -> Settings:
    return Settings()


def get_settings() -> Settings:
    return _build_settings()


def reload_settings() -> Settings:
    _build_settings.cache_clear()
    return _build_settings()


__all__ = [
    "DEFAULT_CORS_ORIGINS",
    "DEFAULT_DB_FILENAME",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_PUBLIC_URL",
    "MAX_PAGE_SIZE",
    "Settings",
    "get_settings",
    "reload_settings",
]
