# src/takahashi/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing is required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TAKAHASHI"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv() -> None:
    """Load a local .env (if present) without overriding real environment variables."""
    load_dotenv(override=False)


_load_dotenv()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path

    # ---- Reminders ----
    notifications_enabled: bool
    notification_poll_seconds: float
    default_lead_minutes: int

    # ---- Input limits ----
    title_max_length: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "takahashi") or "takahashi"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/takahashi"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "store.sqlite3")

        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)
        notification_poll_seconds = _env_float(_k("NOTIFICATION_POLL_SECONDS"), 1.0)
        # Validated against LeadTime at use; an unknown value falls back to 5.
        default_lead_minutes = _env_int(_k("DEFAULT_LEAD_MINUTES"), 5)

        title_max_length = max(1, _env_int(_k("TITLE_MAX_LENGTH"), 30))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            store_db_path=store_db_path,
            notifications_enabled=notifications_enabled,
            notification_poll_seconds=notification_poll_seconds,
            default_lead_minutes=default_lead_minutes,
            title_max_length=title_max_length,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for safe switches.
try:
    import config_local as _config_local  # type: ignore

    # Simple overrides for selected names. Keep it explicit.
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "NOTIFICATIONS_ENABLED"):
        object.__setattr__(  # type: ignore[misc]
            SETTINGS, "notifications_enabled", bool(_config_local.NOTIFICATIONS_ENABLED)
        )
except ImportError:
    pass


def get_settings() -> Settings:
    return SETTINGS
