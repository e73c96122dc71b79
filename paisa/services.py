"""High-level application services orchestrating the paisa backend."""
from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path
from typing import Callable, Iterable, Optional

from .aggregation import summarize
from .config import AppConfig
from .database import KeyValueStore
from .importers import TransactionFileImporter
from .lunch_money import LunchMoneyClient
from .models import LunchMoneyUser, SpendSummary, Transaction, category_sort_key
from . import preferences

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], LunchMoneyClient]


class NotConnectedError(Exception):
    """Raised when neither an API key nor a data directory is available."""


class DashboardService:
    """Coordinates the transaction source, stored preferences and the engine."""

    def __init__(
        self,
        config: AppConfig,
        store: KeyValueStore,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._config = config
        self._store = store
        self._client_factory = client_factory or self._default_client
        self._year_cache: dict[int, list[Transaction]] = {}
        self._cache_lock = threading.Lock()

    def _default_client(self, api_key: str) -> LunchMoneyClient:
        return LunchMoneyClient(
            api_key,
            endpoint=self._config.lunch_money_endpoint,
            page_size=self._config.page_size,
            timeout=self._config.request_timeout,
        )

    # ------------------------------------------------------------------
    # Connection workflows
    # ------------------------------------------------------------------
    @property
    def api_key(self) -> Optional[str]:
        return preferences.load_api_key(self._store)

    def connect(self, api_key: str) -> LunchMoneyUser:
        """Validate ``api_key`` against the API and remember it.

        :class:`~paisa.lunch_money.LunchMoneyError` propagates when the key is
        rejected; nothing is stored in that case.
        """

        api_key = api_key.strip()
        user = self._client_factory(api_key).fetch_user()
        preferences.save_api_key(self._store, api_key)
        self.refresh()
        logger.info("Connected to Lunch Money budget %s", user.budget_name)
        return user

    def disconnect(self) -> None:
        preferences.clear_api_key(self._store)
        self.refresh()

    def current_user(self) -> LunchMoneyUser:
        return self._client_factory(self._require_api_key()).fetch_user()

    def refresh(self) -> None:
        """Drop cached transactions so the next request refetches them."""

        with self._cache_lock:
            self._year_cache.clear()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def load_year(self, year: int) -> list[Transaction]:
        with self._cache_lock:
            if year not in self._year_cache:
                self._year_cache[year] = self._fetch_year(year)
            return self._year_cache[year]

    def _fetch_year(self, year: int) -> list[Transaction]:
        api_key = self.api_key
        if api_key:
            return self._client_factory(api_key).fetch_year(year)
        if self._config.data_dir is not None:
            path = Path(self._config.data_dir) / f"{year}.csv"
            if not path.exists():
                logger.warning("No export found for %s at %s", year, path)
                return []
            return TransactionFileImporter(path).load(year)
        raise NotConnectedError("Connect a Lunch Money API key first.")

    def _require_api_key(self) -> str:
        api_key = self.api_key
        if not api_key:
            raise NotConnectedError("Connect a Lunch Money API key first.")
        return api_key

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------
    def category_names(self, year_a: int, year_b: int) -> list[str]:
        """All category names with spend in either year, ignoring filters."""

        summary = summarize(self.load_year(year_a), self.load_year(year_b), year_a, year_b)
        return list(summary.all_category_names)

    def compare(
        self,
        year_a: int,
        year_b: int,
        month: Optional[int] = None,
        excluded: Optional[Iterable[str]] = None,
        today: Optional[date] = None,
    ) -> SpendSummary:
        """Summarise ``year_a`` against ``year_b``.

        When ``excluded`` is ``None`` the stored exclusion preference applies.
        """

        if excluded is None:
            excluded = preferences.load_excluded_categories(self._store)
        return summarize(
            self.load_year(year_a),
            self.load_year(year_b),
            year_a,
            year_b,
            month=month,
            exclude_category_names=list(excluded),
            today=today,
        )

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------
    def excluded_categories(self) -> list[str]:
        return preferences.load_excluded_categories(self._store)

    def set_excluded_categories(self, names: Iterable[str]) -> list[str]:
        cleaned = sorted({name for name in names if name}, key=category_sort_key)
        preferences.save_excluded_categories(self._store, cleaned)
        return cleaned
