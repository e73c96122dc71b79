"""Domain models used by the paisa backend.

The classes defined here are immutable data containers that do not know
anything about transport or persistence.  The aggregation engine returns a
:class:`SpendSummary` that renderers must treat as read-only; freezing the
dataclasses and using tuples for sequences enforces that.
"""
from __future__ import annotations

import unicodedata
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

UNCATEGORIZED = "Uncategorized"


def normalise_category(name: Optional[str]) -> str:
    """Return the join key used for every category-keyed structure."""

    return name or UNCATEGORIZED


def category_sort_key(name: str) -> tuple[str, str, str]:
    """Order category names the way a person reads them.

    Accents and case are ignored first, then case, then the raw name breaks
    any remaining tie.
    """

    stripped = "".join(
        char for char in unicodedata.normalize("NFKD", name) if not unicodedata.combining(char)
    )
    return stripped.casefold(), name.casefold(), name


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single transaction as returned by the Lunch Money API.

    ``amount`` keeps the source string so the engine can decide how to treat
    malformed values; with ``debit_as_negative`` requested, debits are
    negative.
    """

    id: int
    date: date
    amount: str
    currency: str = ""
    to_base: Optional[float] = None
    payee: str = ""
    category_name: Optional[str] = None
    category_group_name: Optional[str] = None
    is_income: bool = False
    exclude_from_totals: bool = False

    @property
    def category(self) -> str:
        return normalise_category(self.category_name)

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["date"] = self.date.isoformat()
        return payload


@dataclass(frozen=True, slots=True)
class LunchMoneyUser:
    """Account details returned by ``GET /me``."""

    user_name: str
    budget_name: str
    primary_currency: str


@dataclass(frozen=True, slots=True)
class DailyCategoryBreakdown:
    name: str
    amount: int


@dataclass(frozen=True, slots=True)
class DailyDifferenceDriver:
    name: str
    current_year: int
    previous_year: int
    difference: int


@dataclass(frozen=True, slots=True)
class DailySummary:
    """One point of the day-based chart series.

    ``current_year``/``previous_year`` are cumulative; the ``*_day_spend`` and
    breakdown fields describe only the transactions posted on this day.
    """

    day: int
    current_year: int
    previous_year: int
    current_day_spend: int
    previous_day_spend: int
    current_day_category_breakdown: tuple[DailyCategoryBreakdown, ...]
    previous_day_category_breakdown: tuple[DailyCategoryBreakdown, ...]
    difference_drivers: tuple[DailyDifferenceDriver, ...]
    date_str: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CategorySpend:
    name: str
    current_year: int
    previous_year: int
    difference: int
    percent_change: Optional[float]


@dataclass(frozen=True, slots=True)
class WeeklyEntry:
    """Per-week totals, counts and line items (rows = weeks, columns = periods)."""

    week: int
    current_year_total: int
    current_year_count: int
    current_year_transactions: tuple[Transaction, ...]
    previous_year_total: int
    previous_year_count: int
    previous_year_transactions: tuple[Transaction, ...]


@dataclass(frozen=True, slots=True)
class SpendSummary:
    """Everything the dashboard renders for one comparison.

    Attributes:
        category_totals: Period-A spend per category before category
            exclusion, so filter labels stay visible while toggled off.
        category_totals_previous_year: Same for period B.
        current_week: ISO week (or week-of-month bucket) of today when the
            view covers the present; 52 (or 5) otherwise.
        total_weeks_in_view: 52 for the year view, 5 for the month view.
        current_day_num: Day index of today when viewing the present period,
            ``None`` otherwise.
    """

    total_current_year: int
    total_previous_year: int
    difference: int
    percent_change: Optional[float]
    daily_data: tuple[DailySummary, ...]
    top_categories: tuple[CategorySpend, ...]
    all_category_names: tuple[str, ...]
    current_week: int
    total_weeks_in_view: int
    current_year_weekly_avg: int
    previous_year_weekly_avg: int
    month: Optional[int]
    total_days_in_view: int
    weekly_data: tuple[WeeklyEntry, ...]
    category_totals: dict[str, int]
    category_totals_previous_year: dict[str, int]
    current_day_num: Optional[int]

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation of the summary."""

        payload = asdict(self)
        payload["weekly_data"] = [
            {
                **asdict(entry),
                "current_year_transactions": [tx.to_dict() for tx in entry.current_year_transactions],
                "previous_year_transactions": [tx.to_dict() for tx in entry.previous_year_transactions],
            }
            for entry in self.weekly_data
        ]
        return payload


__all__ = [
    "UNCATEGORIZED",
    "normalise_category",
    "category_sort_key",
    "Transaction",
    "LunchMoneyUser",
    "DailyCategoryBreakdown",
    "DailyDifferenceDriver",
    "DailySummary",
    "CategorySpend",
    "WeeklyEntry",
    "SpendSummary",
]
