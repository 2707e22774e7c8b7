"""XDG config loading with environment overrides."""

from __future__ import annotations

import logging as py_logging
import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from coursehub.retry import RetryPolicy

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/coursehub/config.toml")
DEFAULT_DATABASE_URL = "https://it-chatbot-f663e-default-rtdb.asia-southeast1.firebasedatabase.app/"
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 1000
FIREBASE_ENV_PREFIX = "COURSEHUB_FIREBASE_"

REQUIRED_FIREBASE_KEYS = (
    "api_key",
    "auth_domain",
    "project_id",
    "storage_bucket",
    "messaging_sender_id",
    "app_id",
)


class FirebaseSettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    api_key: str = ""
    auth_domain: str = ""
    database_url: str = DEFAULT_DATABASE_URL
    project_id: str = ""
    storage_bucket: str = ""
    messaging_sender_id: str = ""
    app_id: str = ""


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)
    retry_max_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=1, le=10)
    retry_initial_delay_ms: int = Field(default=DEFAULT_RETRY_DELAY_MS, ge=0, le=60_000)
    log_level: str = "INFO"


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH.expanduser()
    return Path(path).expanduser()


def _assign(target: BaseModel, field: str, value: object) -> None:
    try:
        setattr(target, field, value)
    except ValidationError:
        logger.warning("Ignoring invalid config value for %s: %r", field, value)


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    firebase_raw = raw.get("firebase", {})
    if isinstance(firebase_raw, dict):
        for key in FirebaseSettings.model_fields:
            value = firebase_raw.get(key)
            if isinstance(value, str):
                _assign(cfg.firebase, key, value.strip())

    for key in ("retry_max_attempts", "retry_initial_delay_ms"):
        value = raw.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            _assign(cfg, key, value)

    log_level = raw.get("log_level")
    if isinstance(log_level, str) and log_level.strip():
        cfg.log_level = log_level.strip().upper()

    return cfg


def _apply_env_overrides(cfg: AppConfig) -> AppConfig:
    for key in FirebaseSettings.model_fields:
        env_value = os.getenv(f"{FIREBASE_ENV_PREFIX}{key.upper()}", "").strip()
        if env_value:
            _assign(cfg.firebase, key, env_value)
    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _apply_env_overrides(AppConfig())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", resolved, exc)
        return _apply_env_overrides(AppConfig())
    return _apply_env_overrides(_sanitize(raw))


def missing_firebase_keys(config: AppConfig) -> list[str]:
    return [key for key in REQUIRED_FIREBASE_KEYS if not getattr(config.firebase, key)]


def warn_if_incomplete(config: AppConfig) -> list[str]:
    missing = missing_firebase_keys(config)
    if missing:
        logger.warning(
            "Firebase config is incomplete. Missing: %s. Requests may fail with "
            "net::ERR_ABORTED if the identity service cannot be reached.",
            ", ".join(missing),
        )
    return missing


def retry_policy(config: AppConfig) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=config.retry_max_attempts,
        initial_delay_ms=config.retry_initial_delay_ms,
    )
