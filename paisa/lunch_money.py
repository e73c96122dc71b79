"""Lunch Money REST client for the paisa backend."""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from .config import DEFAULT_LUNCH_MONEY_ENDPOINT, DEFAULT_PAGE_SIZE, DEFAULT_TIMEOUT_SECONDS
from .importers import transaction_from_payload
from .models import LunchMoneyUser, Transaction

logger = logging.getLogger(__name__)


class LunchMoneyError(Exception):
    """Raised when the Lunch Money API rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LunchMoneyClient:
    """Fetch the user profile and transactions with a bearer credential."""

    def __init__(
        self,
        api_key: str,
        endpoint: str = DEFAULT_LUNCH_MONEY_ENDPOINT,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key
        self._endpoint = endpoint.rstrip("/")
        self._page_size = page_size
        self._timeout = timeout
        self._session = session or requests.Session()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch_user(self) -> LunchMoneyUser:
        payload = self._request("/me")
        return LunchMoneyUser(
            user_name=str(payload.get("user_name", "")),
            budget_name=str(payload.get("budget_name", "")),
            primary_currency=str(payload.get("primary_currency", "")),
        )

    def fetch_transactions(self, start_date: str, end_date: str) -> list[Transaction]:
        """Return every transaction between two ``YYYY-MM-DD`` dates inclusive.

        Pages of :attr:`page_size` are requested until the API returns a short
        page.  Debits are requested as negative amounts.
        """

        offset = 0
        transactions: list[Transaction] = []
        while True:
            payload = self._request(
                "/transactions",
                params={
                    "start_date": start_date,
                    "end_date": end_date,
                    "debit_as_negative": "true",
                    "limit": self._page_size,
                    "offset": offset,
                },
            )
            page = payload.get("transactions") or []
            for item in page:
                transaction = transaction_from_payload(item)
                if transaction is not None:
                    transactions.append(transaction)
            if len(page) < self._page_size:
                break
            offset += self._page_size

        logger.info(
            "Fetched %d transactions between %s and %s",
            len(transactions),
            start_date,
            end_date,
        )
        return transactions

    def fetch_year(self, year: int) -> list[Transaction]:
        return self.fetch_transactions(f"{year}-01-01", f"{year}-12-31")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = path if path.startswith("http") else f"{self._endpoint}{path}"
        try:
            response = self._session.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise LunchMoneyError(f"Lunch Money API request failed: {exc}") from exc

        if not response.ok:
            raise LunchMoneyError(_error_message(response), status_code=response.status_code)
        return response.json()


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, list):
        error = "; ".join(str(item) for item in error)
    return str(error) if error else f"Lunch Money API error: {response.status_code}"
