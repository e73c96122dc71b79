"""Application configuration utilities for the paisa backend.

This module centralises environment-driven configuration so the rest of the
code base does not need to read environment variables directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load any variables defined in a local .env file. The call is idempotent and
# inexpensive, so importing it at module import time keeps the API ergonomic.
load_dotenv()

DEFAULT_LUNCH_MONEY_ENDPOINT = "https://dev.lunchmoney.app/v1"
DEFAULT_PAGE_SIZE = 500
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class AppConfig:
    """Strongly-typed container for runtime configuration.

    Attributes:
        project_root: Root directory of the project. Used to derive default
            paths so the app works out of the box after cloning the repo.
        database_file: Absolute path to the SQLite file backing the key-value
            store for user preferences and the stored API key.
        lunch_money_api_key: Optional API key. When set it seeds the store at
            startup so the dashboard is connected without a ``/connect`` call.
        lunch_money_endpoint: Base URL of the Lunch Money REST API.
        page_size: Number of transactions requested per page.
        request_timeout: Timeout in seconds for each HTTP request.
        data_dir: Optional directory holding ``<year>.csv`` exports, used when
            no API key is stored.
        log_level: Name of the root logging level.
    """

    project_root: Path
    database_file: Path
    lunch_money_api_key: Optional[str]
    lunch_money_endpoint: str
    page_size: int
    request_timeout: float
    data_dir: Optional[Path]
    log_level: str


def load_config() -> AppConfig:
    """Create a new :class:`AppConfig` instance based on environment settings.

    Environment variables override the default values, allowing users to
    customise the runtime without touching the source code.
    """

    project_root = Path(__file__).resolve().parent.parent
    database_file = Path(
        getenv_with_default(
            "PAISA_DB_FILE",
            project_root / "paisa.db",
        )
    )
    data_dir_value = getenv_with_default("PAISA_DATA_DIR")

    # Ensure the directories exist so later code can safely create files.
    database_file.parent.mkdir(parents=True, exist_ok=True)

    return AppConfig(
        project_root=project_root,
        database_file=database_file,
        lunch_money_api_key=getenv_with_default("LUNCH_MONEY_API_KEY"),
        lunch_money_endpoint=getenv_with_default(
            "LUNCH_MONEY_ENDPOINT",
            DEFAULT_LUNCH_MONEY_ENDPOINT,
        ).rstrip("/"),
        page_size=int(getenv_with_default("LUNCH_MONEY_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))),
        request_timeout=float(getenv_with_default("LUNCH_MONEY_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))),
        data_dir=Path(data_dir_value) if data_dir_value else None,
        log_level=getenv_with_default("PAISA_LOG_LEVEL", "INFO").upper(),
    )


def getenv_with_default(name: str, default: Optional[Path | str] = None) -> Optional[str]:
    """Return the value of an environment variable or a sensible default.

    ``None`` values are propagated so callers can make explicit decisions about
    optional configuration values. Paths are converted to strings, keeping the
    return type uniform and easy to serialise.
    """

    from os import getenv

    value = getenv(name)
    if value is not None:
        return value
    if default is None:
        return None
    return str(default)
