"""
Environment-driven settings.

Values come from the process environment, optionally seeded from a `.env`
file in the working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import quote

from dotenv import load_dotenv

load_dotenv()


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def database_url_from_parts() -> str:
    """
    Assemble a Postgres DSN from DB_USER / DB_PASSWORD / DB_HOST / DB_PORT / DB_NAME.

    Returns an empty string when DB_NAME is not set.
    """
    name = _env_str("DB_NAME")
    if not name:
        return ""

    user = quote(_env_str("DB_USER"), safe="")
    password = quote(_env_str("DB_PASSWORD"), safe="")
    host = _env_str("DB_HOST", "localhost")
    port = _env_int("DB_PORT", 5432)

    credentials = ""
    if user:
        credentials = f"{user}:{password}@" if password else f"{user}@"
    return f"postgresql://{credentials}{host}:{port}/{name}"


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_command_timeout: float = 30.0
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=list)
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_env_str("DATABASE_URL") or database_url_from_parts(),
            db_pool_min_size=max(_env_int("DB_POOL_MIN_SIZE", 1), 0),
            db_pool_max_size=max(_env_int("DB_POOL_MAX_SIZE", 10), 1),
            db_command_timeout=_env_float("DB_COMMAND_TIMEOUT", 30.0),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            cors_origins=_env_list("CORS_ORIGINS"),
            host=_env_str("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
        )
