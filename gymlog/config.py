# =============================================================================
# Settings: everything the service reads from the environment
# =============================================================================

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_DB_FILENAME = "gym_app.db"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def database_url_from_env() -> str:
    """Pick the database URL.

    Priority:
      1) Cloud SQL (PostgreSQL) if CLOUD_SQL_CONNECTION_NAME is set
      2) DATABASE_URL, taken as-is
      3) env GYMLOG_DB (path to a SQLite file)
      4) $DATA_DIR/gym_app.db, else ./gym_app.db
    """
    cloud_sql = os.getenv("CLOUD_SQL_CONNECTION_NAME")  # e.g. project:region:instance
    if cloud_sql:
        user = os.getenv("DB_USER", "postgres")
        password = os.getenv("DB_PASSWORD", "")
        name = os.getenv("DB_NAME", "gym_app")
        return f"postgresql+asyncpg://{user}:{password}@/{name}?host=/cloudsql/{cloud_sql}"

    url = os.getenv("DATABASE_URL")
    if url:
        return url

    path = os.getenv("GYMLOG_DB")
    if not path:
        data_dir = os.getenv("DATA_DIR")
        base = Path(data_dir) if data_dir else Path.cwd()
        path = str((base / DEFAULT_DB_FILENAME).resolve())
    return f"sqlite+aiosqlite:///{path}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    session_secret: str = "change-me-in-production"
    session_max_age: int = 24 * 60 * 60  # seconds
    cookie_secure: bool = False
    frontend_url: str = "http://localhost:5173"
    api_prefix: str = ""
    host: str = "127.0.0.1"
    port: int = 3001
    bcrypt_rounds: int = 10
    rate_limit_requests: int = 30  # 0 disables
    rate_limit_window: int = 60  # seconds
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=database_url_from_env(),
            session_secret=os.getenv("SESSION_SECRET", cls.session_secret),
            session_max_age=_env_int("SESSION_MAX_AGE", cls.session_max_age),
            cookie_secure=os.getenv("APP_ENV", "").lower() == "production",
            frontend_url=os.getenv("FRONTEND_URL", cls.frontend_url),
            api_prefix=os.getenv("API_PREFIX", cls.api_prefix).rstrip("/"),
            host=os.getenv("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", cls.bcrypt_rounds),
            rate_limit_requests=_env_int("RATE_LIMIT_REQUESTS", cls.rate_limit_requests),
            rate_limit_window=_env_int("RATE_LIMIT_WINDOW", cls.rate_limit_window),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(levelname)s %(name)s %(message)s",
    )
