from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _parse_positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {raw!r})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    jwt_secret: str
    # Point lookups and single-record writes.
    query_timeout_seconds: float
    # Aggregates scan whole learner datasets, so they get a longer budget.
    analytics_timeout_seconds: float
    identifier_allocation_retries: int

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
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    retries_raw = _getenv("IDENTIFIER_ALLOCATION_RETRIES", "3")
    try:
        retries = int(retries_raw)
    except ValueError:
        raise ValueError(
            f"IDENTIFIER_ALLOCATION_RETRIES must be an integer (got {retries_raw!r})"
        ) from None
    if retries < 1:
        raise ValueError(
            f"IDENTIFIER_ALLOCATION_RETRIES must be at least 1 (got {retries_raw!r})"
        )

    jwt_secret = _getenv("JWT_SECRET", "")
    if not jwt_secret:
        if app_env_raw == "prod":
            raise ValueError("JWT_SECRET must be set when APP_ENV=prod")
        jwt_secret = "dev-only-insecure-secret-change-me-in-prod"

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        jwt_secret=jwt_secret,
        query_timeout_seconds=_parse_positive_float(
            "QUERY_TIMEOUT_SECONDS", _getenv("QUERY_TIMEOUT_SECONDS", "5")
        ),
        analytics_timeout_seconds=_parse_positive_float(
            "ANALYTICS_TIMEOUT_SECONDS", _getenv("ANALYTICS_TIMEOUT_SECONDS", "15")
        ),
        identifier_allocation_retries=retries,
    )


SETTINGS = load_settings()
