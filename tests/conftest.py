"""Shared fixtures for the paisa test-suite."""
from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable, Optional

import pytest

from paisa.config import AppConfig
from paisa.models import LunchMoneyUser, Transaction


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory building a transaction with sensible defaults."""

    counter = {"next_id": 1}

    def _make(
        date_str: str,
        amount: str,
        category: Optional[str] = "Food",
        **overrides: object,
    ) -> Transaction:
        tx_id = overrides.pop("id", counter["next_id"])
        counter["next_id"] += 1
        return Transaction(
            id=tx_id,
            date=date.fromisoformat(date_str),
            amount=amount,
            currency="usd",
            payee=overrides.pop("payee", "Shop"),
            category_name=category,
            **overrides,
        )

    return _make


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        project_root=tmp_path,
        database_file=tmp_path / "paisa.db",
        lunch_money_api_key=None,
        lunch_money_endpoint="https://lunchmoney.test/v1",
        page_size=500,
        request_timeout=5.0,
        data_dir=None,
        log_level="INFO",
    )


class FakeLunchMoneyClient:
    """In-memory stand-in for :class:`paisa.lunch_money.LunchMoneyClient`."""

    def __init__(self, transactions_by_year: dict[int, list[Transaction]], error: Exception | None = None) -> None:
        self.transactions_by_year = transactions_by_year
        self.error = error
        self.fetched_years: list[int] = []

    def fetch_user(self) -> LunchMoneyUser:
        if self.error:
            raise self.error
        return LunchMoneyUser(user_name="Ada", budget_name="Household", primary_currency="usd")

    def fetch_year(self, year: int) -> list[Transaction]:
        if self.error:
            raise self.error
        self.fetched_years.append(year)
        return list(self.transactions_by_year.get(year, []))


@pytest.fixture
def fake_client_cls() -> type[FakeLunchMoneyClient]:
    return FakeLunchMoneyClient
