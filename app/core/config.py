from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_DEV_JWT_SECRET = "dev-only-insecure-jwt-secret"
_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off", "")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getint(name: str, default: str, *, minimum: int) -> int:
    raw = _getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    jwt_secret: str = _DEV_JWT_SECRET
    jwt_issuer: str = "lms-identity"
    progress_max_attempts: int = 3
    progress_cache_ttl: int = 300

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in _TRUE_WORDS + _FALSE_WORDS:
        raise ValueError(f"LOG_JSON must be true|false (got {log_json_raw!r})")

    port = _getint("PORT", "8000", minimum=1)
    progress_max_attempts = _getint("PROGRESS_MAX_ATTEMPTS", "3", minimum=1)
    progress_cache_ttl = _getint("PROGRESS_CACHE_TTL", "300", minimum=0)

    jwt_secret = _getenv("JWT_SECRET", "")
    if not jwt_secret:
        if app_env_raw == "prod":
            raise ValueError("JWT_SECRET must be set when APP_ENV=prod")
        jwt_secret = _DEV_JWT_SECRET

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in _TRUE_WORDS,
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        jwt_secret=jwt_secret,
        jwt_issuer=_getenv("JWT_ISSUER", "lms-identity"),
        progress_max_attempts=progress_max_attempts,
        progress_cache_ttl=progress_cache_ttl,
    )


SETTINGS = load_settings()
