"""Transaction aggregation engine.

:func:`summarize` turns two raw transaction lists into every view the
dashboard renders.  It is a pure function: it performs no I/O, keeps no state
between calls and never raises on well-formed input.  Amounts are summed as
unrounded floats and rounded once, when placed into an output field.
"""
from __future__ import annotations

import math
from collections import defaultdict
from datetime import date
from functools import partial
from typing import Callable, Iterable, Optional, Sequence

from .dates import (
    date_from_day_of_year,
    day_of_month,
    day_of_year,
    days_in_month,
    days_in_year,
    iso_week,
    week_of_month,
)
from .importers import is_debit, spend_amount
from .models import (
    CategorySpend,
    DailyCategoryBreakdown,
    DailyDifferenceDriver,
    DailySummary,
    SpendSummary,
    Transaction,
    WeeklyEntry,
    category_sort_key,
)

TOP_CATEGORY_LIMIT = 8
WEEKS_IN_YEAR_VIEW = 52
WEEKS_IN_MONTH_VIEW = 5


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves towards positive infinity."""

    return int(math.floor(value + 0.5))


def percent_change(current: float, previous: float) -> Optional[float]:
    """Return the change relative to ``previous``; ``None`` without a baseline."""

    if previous > 0:
        return (current - previous) / previous * 100
    return None


def filter_by_month(transactions: Iterable[Transaction], year: int, month: int) -> list[Transaction]:
    return [tx for tx in transactions if tx.date.year == year and tx.date.month == month]


def filter_expenses(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Keep debits that are neither income nor excluded from totals."""

    return [
        tx
        for tx in transactions
        if not tx.is_income and not tx.exclude_from_totals and is_debit(tx.amount)
    ]


def category_spend(transactions: Iterable[Transaction]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for tx in transactions:
        totals[tx.category] += spend_amount(tx.amount)
    return dict(totals)


def summarize(
    current_year_tx: Sequence[Transaction],
    previous_year_tx: Sequence[Transaction],
    current_year: int,
    previous_year: int,
    month: Optional[int] = None,
    exclude_category_names: Optional[Iterable[str]] = None,
    today: Optional[date] = None,
) -> SpendSummary:
    """Compare spending of ``current_year`` (period A) with ``previous_year``.

    Args:
        current_year_tx: Transactions of period A.
        previous_year_tx: Transactions of period B.
        current_year: Calendar year of period A.
        previous_year: Calendar year of period B.
        month: When set (1-12), compare this month of each year only.  A value
            outside that range produces an empty view.
        exclude_category_names: Normalised category names to leave out of the
            totals, series and weekly data.  Category totals for filter labels
            are computed before this exclusion.
        today: Reference date for the "today" marker.  Defaults to the local
            calendar date; pass it explicitly for a reproducible result.
    """

    today = today or date.today()

    if month is not None:
        current_tx = filter_by_month(current_year_tx, current_year, month)
        previous_tx = filter_by_month(previous_year_tx, previous_year, month)
    else:
        current_tx = list(current_year_tx)
        previous_tx = list(previous_year_tx)

    current_expenses = filter_expenses(current_tx)
    previous_expenses = filter_expenses(previous_tx)

    all_category_names = sorted(
        {tx.category for tx in current_expenses} | {tx.category for tx in previous_expenses},
        key=category_sort_key,
    )

    current_label_totals = category_spend(current_expenses)
    previous_label_totals = category_spend(previous_expenses)
    category_totals = {
        name: round_half_up(current_label_totals.get(name, 0.0)) for name in all_category_names
    }
    category_totals_previous_year = {
        name: round_half_up(previous_label_totals.get(name, 0.0)) for name in all_category_names
    }

    excluded = set(exclude_category_names or ())
    if excluded:
        current_expenses = [tx for tx in current_expenses if tx.category not in excluded]
        previous_expenses = [tx for tx in previous_expenses if tx.category not in excluded]

    # Calendar framing
    is_current_year = today.year == current_year
    is_current_month = month is not None and today.month == month
    if month is not None:
        max_days = days_in_month(current_year, month)
        current_day_num = today.day if is_current_year and is_current_month else max_days
        current_week = (
            week_of_month(today) if is_current_year and is_current_month else WEEKS_IN_MONTH_VIEW
        )
        total_weeks = WEEKS_IN_MONTH_VIEW
    else:
        max_days = days_in_year(current_year)
        current_day_num = day_of_year(today, current_year) if is_current_year else max_days
        current_week = iso_week(today) if is_current_year else WEEKS_IN_YEAR_VIEW
        total_weeks = WEEKS_IN_YEAR_VIEW

    if month is not None:
        current_day_of: Callable[[date], int] = day_of_month
        previous_day_of: Callable[[date], int] = day_of_month
        week_of: Callable[[date], int] = week_of_month
    else:
        current_day_of = partial(day_of_year, year=current_year)
        previous_day_of = partial(day_of_year, year=previous_year)
        week_of = iso_week

    current_daily, current_daily_by_category = _accumulate_daily(current_expenses, current_day_of, max_days)
    previous_daily, previous_daily_by_category = _accumulate_daily(previous_expenses, previous_day_of, max_days)

    # Cumulative series; period A is held flat after today when it is the present year
    daily_data: list[DailySummary] = []
    cumulative_current = 0.0
    cumulative_previous = 0.0
    total_current_value = 0.0
    for day in range(1, max_days + 1):
        current_categories = current_daily_by_category.get(day, {})
        previous_categories = previous_daily_by_category.get(day, {})

        if day <= current_day_num or not is_current_year:
            cumulative_current += current_daily.get(day, 0.0)
            if day == current_day_num and is_current_year:
                total_current_value = cumulative_current
        cumulative_previous += previous_daily.get(day, 0.0)

        if month is not None:
            date_str = f"{current_year}-{month:02d}-{day:02d}"
        else:
            date_str = date_from_day_of_year(current_year, day).isoformat()

        daily_data.append(
            DailySummary(
                day=day,
                current_year=round_half_up(cumulative_current),
                previous_year=round_half_up(cumulative_previous),
                current_day_spend=round_half_up(current_daily.get(day, 0.0)),
                previous_day_spend=round_half_up(previous_daily.get(day, 0.0)),
                current_day_category_breakdown=_category_breakdown(current_categories),
                previous_day_category_breakdown=_category_breakdown(previous_categories),
                difference_drivers=_difference_drivers(current_categories, previous_categories),
                date_str=date_str,
            )
        )

    total_current_year = round_half_up(total_current_value if is_current_year else cumulative_current)
    total_previous_year = round_half_up(cumulative_previous)

    top_categories = _top_categories(category_spend(current_expenses), category_spend(previous_expenses))

    current_weekly_avg = total_current_year / current_week if current_week > 0 else 0.0
    previous_weekly_avg = total_previous_year / total_weeks if total_weeks > 0 else 0.0

    return SpendSummary(
        total_current_year=total_current_year,
        total_previous_year=total_previous_year,
        difference=total_current_year - total_previous_year,
        percent_change=percent_change(total_current_year, total_previous_year),
        daily_data=tuple(daily_data),
        top_categories=top_categories,
        all_category_names=tuple(all_category_names),
        current_week=current_week,
        total_weeks_in_view=total_weeks,
        current_year_weekly_avg=round_half_up(current_weekly_avg),
        previous_year_weekly_avg=round_half_up(previous_weekly_avg),
        month=month,
        total_days_in_view=max_days,
        weekly_data=_weekly_entries(current_expenses, previous_expenses, week_of),
        category_totals=category_totals,
        category_totals_previous_year=category_totals_previous_year,
        current_day_num=current_day_num if is_current_year and (month is None or is_current_month) else None,
    )


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def _accumulate_daily(
    expenses: Iterable[Transaction],
    day_of: Callable[[date], int],
    max_days: int,
) -> tuple[dict[int, float], dict[int, dict[str, float]]]:
    daily: dict[int, float] = defaultdict(float)
    by_category: dict[int, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for tx in expenses:
        day = day_of(tx.date)
        if not 1 <= day <= max_days:
            continue
        amount = spend_amount(tx.amount)
        daily[day] += amount
        by_category[day][tx.category] += amount
    return daily, by_category


def _category_breakdown(day_spend: dict[str, float]) -> tuple[DailyCategoryBreakdown, ...]:
    entries = [
        DailyCategoryBreakdown(name=name, amount=round_half_up(amount))
        for name, amount in day_spend.items()
    ]
    entries = [entry for entry in entries if entry.amount > 0]
    entries.sort(key=lambda entry: (-entry.amount, category_sort_key(entry.name)))
    return tuple(entries)


def _difference_drivers(
    current_spend: dict[str, float],
    previous_spend: dict[str, float],
) -> tuple[DailyDifferenceDriver, ...]:
    drivers = []
    for name in {*current_spend, *previous_spend}:
        current = round_half_up(current_spend.get(name, 0.0))
        previous = round_half_up(previous_spend.get(name, 0.0))
        if current > 0 or previous > 0:
            drivers.append(
                DailyDifferenceDriver(
                    name=name,
                    current_year=current,
                    previous_year=previous,
                    difference=current - previous,
                )
            )
    drivers.sort(
        key=lambda entry: (
            -abs(entry.difference),
            -(entry.current_year + entry.previous_year),
            category_sort_key(entry.name),
        )
    )
    return tuple(drivers)


def _top_categories(
    current_spend: dict[str, float],
    previous_spend: dict[str, float],
) -> tuple[CategorySpend, ...]:
    names = list(dict.fromkeys([*current_spend, *previous_spend]))
    categories = []
    for name in names:
        current = current_spend.get(name, 0.0)
        previous = previous_spend.get(name, 0.0)
        categories.append(
            CategorySpend(
                name=name,
                current_year=round_half_up(current),
                previous_year=round_half_up(previous),
                difference=round_half_up(current - previous),
                percent_change=percent_change(current, previous),
            )
        )
    categories.sort(key=lambda entry: -entry.current_year)
    return tuple(categories[:TOP_CATEGORY_LIMIT])


def _bucket_by_week(
    expenses: Iterable[Transaction],
    week_of: Callable[[date], int],
) -> dict[int, tuple[float, list[Transaction]]]:
    totals: dict[int, float] = defaultdict(float)
    items: dict[int, list[Transaction]] = defaultdict(list)
    for tx in expenses:
        week = week_of(tx.date)
        totals[week] += spend_amount(tx.amount)
        items[week].append(tx)
    return {
        week: (totals[week], sorted(items[week], key=lambda tx: tx.date))
        for week in items
    }


def _weekly_entries(
    current_expenses: Iterable[Transaction],
    previous_expenses: Iterable[Transaction],
    week_of: Callable[[date], int],
) -> tuple[WeeklyEntry, ...]:
    current_weeks = _bucket_by_week(current_expenses, week_of)
    previous_weeks = _bucket_by_week(previous_expenses, week_of)
    entries = []
    for week in sorted({*current_weeks, *previous_weeks}):
        current_total, current_items = current_weeks.get(week, (0.0, []))
        previous_total, previous_items = previous_weeks.get(week, (0.0, []))
        entries.append(
            WeeklyEntry(
                week=week,
                current_year_total=round_half_up(current_total),
                current_year_count=len(current_items),
                current_year_transactions=tuple(current_items),
                previous_year_total=round_half_up(previous_total),
                previous_year_count=len(previous_items),
                previous_year_transactions=tuple(previous_items),
            )
        )
    return tuple(entries)
