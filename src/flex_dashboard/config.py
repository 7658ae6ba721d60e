# src/flex_dashboard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (Firestore credentials are read lazily by the store).
- Local SQLite backend by default so the dashboard runs without any cloud setup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "FLEX"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


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

    # ---- State store ----
    backend: str
    app_id: str
    store_db_path: Path

    # ---- Identity ----
    user_id: Optional[str]
    auth_token: Optional[str]
    identity_path: Path

    # ---- Firebase ----
    firebase_credentials: Optional[str]
    firebase_project_id: Optional[str]

    # ---- Ledger ----
    daily_reward_minutes: int
    initial_flex_minutes: int

    # ---- Sound cues ----
    sound_enabled: bool
    audio_dir: Path

    # ---- Local data paths (ignored by git) ----
    data_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "flex-dashboard")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        backend = _env(_k("BACKEND"), "sqlite").strip().lower() or "sqlite"
        # Same fallback the hosted build used when no app id was injected.
        app_id = _env(_k("APP_ID"), "default-task-tracker-id").strip()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/flex"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "state.sqlite3")
        identity_path = _env_path(_k("IDENTITY_PATH"), data_dir / "identity.json")

        user_id = (_first_env(_k("USER_ID"), default="") or "").strip() or None
        auth_token = (_first_env(_k("AUTH_TOKEN"), "FIREBASE_ID_TOKEN", default="") or "").strip() or None

        firebase_credentials = _first_env(
            _k("FIREBASE_CREDENTIALS"),
            "FIREBASE_CREDENTIALS",
            "GOOGLE_APPLICATION_CREDENTIALS",
            default=None,
        )
        firebase_project_id = _first_env(_k("FIREBASE_PROJECT_ID"), "GOOGLE_CLOUD_PROJECT", default=None)

        daily_reward_minutes = max(0, _env_int(_k("DAILY_REWARD_MINUTES"), 30))
        initial_flex_minutes = _env_int(_k("INITIAL_FLEX_MINUTES"), 60)

        sound_enabled = _env_bool(_k("SOUND_ENABLED"), False)
        audio_dir = _env_path(_k("AUDIO_DIR"), Path("audio"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            backend=backend,
            app_id=app_id,
            store_db_path=store_db_path,
            user_id=user_id,
            auth_token=auth_token,
            identity_path=identity_path,
            firebase_credentials=firebase_credentials,
            firebase_project_id=firebase_project_id,
            daily_reward_minutes=daily_reward_minutes,
            initial_flex_minutes=initial_flex_minutes,
            sound_enabled=sound_enabled,
            audio_dir=audio_dir,
            data_dir=data_dir,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env for secrets; use config_local.py only for safe switches.
try:
    import config_local as _config_local  # type: ignore

    if hasattr(_config_local, "SOUND_ENABLED"):
        object.__setattr__(SETTINGS, "sound_enabled", bool(_config_local.SOUND_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "BACKEND"):
        object.__setattr__(SETTINGS, "backend", str(_config_local.BACKEND).strip().lower())  # type: ignore[misc]
except ImportError:
    pass


def get_settings() -> Settings:
    return SETTINGS
