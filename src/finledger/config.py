"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to ``default``."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    parsed = int(value)
    if parsed < 1:
        raise ValueError(f"{name} must be a positive integer, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "FinLedger"
    DB_FILENAME = "finledger.db"
    ENV_PREFIX = "FINLEDGER_"
    RECENT_TRANSACTIONS_LIMIT = 5
    SQLITE_PRAGMAS = {"foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool(f"{self.ENV_PREFIX}DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv(f"{self.ENV_PREFIX}DATABASE_URL", self._build_sqlite_url())
        self.CHART_MONTHS = _env_int(f"{self.ENV_PREFIX}CHART_MONTHS", 6)
        self.RECENT_ACHIEVEMENT_HOURS = _env_int(f"{self.ENV_PREFIX}RECENT_ACHIEVEMENT_HOURS", 24)
        self.EXPIRING_DAYS = _env_int(f"{self.ENV_PREFIX}EXPIRING_DAYS", 7)

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite database and logs live."""

        data_root = os.getenv(f"{self.ENV_PREFIX}DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            engine_options["connect_args"] = {"check_same_thread": False}
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for test runs rooted at an explicit data directory."""

    DEBUG = False
    TESTING = True

    def __init__(self, data_dir: Path | str) -> None:
        self._data_dir = Path(data_dir)
        super().__init__()
        self.DATABASE_URL = self._build_sqlite_url()

    def _resolve_data_dir(self) -> Path:
        path = self._data_dir.expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path
