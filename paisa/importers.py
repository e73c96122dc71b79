"""Normalise Lunch Money payloads and export files into :class:`Transaction`."""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterator, Mapping, Optional

import pandas as pd

from .dates import parse_date
from .models import Transaction

logger = logging.getLogger(__name__)


def parse_amount(value: object) -> float:
    """Parse a signed decimal string, returning ``nan`` when it is malformed."""

    if value is None:
        return math.nan
    stringified = str(value).strip()
    if not stringified:
        return math.nan
    try:
        return float(stringified)
    except ValueError:
        return math.nan


def spend_amount(value: object) -> float:
    """Absolute amount used in every sum; malformed values contribute zero."""

    amount = parse_amount(value)
    if not math.isfinite(amount):
        return 0.0
    return abs(amount)


def is_debit(value: object) -> bool:
    """Return ``True`` for negative amounts, including ``-0``.

    Amounts that fail to parse are treated as zero-valued debits so the row
    still shows up in the weekly line items.
    """

    amount = parse_amount(value)
    if math.isnan(amount):
        return True
    return math.copysign(1.0, amount) < 0


def transaction_from_payload(payload: Mapping[str, object]) -> Optional[Transaction]:
    """Build a :class:`Transaction` from a Lunch Money JSON object.

    Returns ``None`` when the payload has no parseable date, since such a row
    cannot be placed on the calendar.
    """

    transaction_date = parse_date(payload.get("date"))
    if transaction_date is None:
        logger.warning("Skipping transaction %s without a valid date", payload.get("id"))
        return None

    return Transaction(
        id=_parse_int(payload.get("id")),
        date=transaction_date,
        amount=_clean_string(payload.get("amount")),
        currency=_clean_string(payload.get("currency")),
        to_base=_parse_optional_float(payload.get("to_base")),
        payee=_clean_string(payload.get("payee")),
        category_name=_clean_string(payload.get("category_name")) or None,
        category_group_name=_clean_string(payload.get("category_group_name")) or None,
        is_income=_parse_bool(payload.get("is_income")),
        exclude_from_totals=_parse_bool(payload.get("exclude_from_totals")),
    )


class TransactionFileImporter:
    """Load transactions from a Lunch Money CSV (or Excel) export.

    Columns follow the API field names (``id``, ``date``, ``amount``,
    ``category_name`` ...).  Missing columns fall back to the dataclass
    defaults.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self, year: Optional[int] = None) -> list[Transaction]:
        """Return the file's transactions, optionally limited to ``year``."""

        dataframe = self._load_frame()
        transactions: list[Transaction] = []
        for payload in self._iter_payloads(dataframe):
            transaction = transaction_from_payload(payload)
            if transaction is None:
                continue
            if year is not None and transaction.date.year != year:
                continue
            transactions.append(transaction)
        logger.info("Loaded %d transactions from %s", len(transactions), self.path)
        return transactions

    def _load_frame(self) -> pd.DataFrame:
        if self.path.suffix.lower() in {".xlsx", ".xls"}:
            dataframe = pd.read_excel(self.path, dtype=str)
        else:
            dataframe = pd.read_csv(self.path, dtype=str)
        dataframe.columns = [str(column).strip() for column in dataframe.columns]
        return dataframe

    @staticmethod
    def _iter_payloads(dataframe: pd.DataFrame) -> Iterator[dict[str, object]]:
        for _, row in dataframe.iterrows():
            yield {key: value for key, value in row.items() if not pd.isna(value)}


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def _clean_string(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_int(value: object) -> int:
    try:
        return int(float(str(value)))
    except (TypeError, ValueError):
        return 0


def _parse_optional_float(value: object) -> Optional[float]:
    if value is None:
        return None
    amount = parse_amount(value)
    return None if math.isnan(amount) else amount


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"true", "1", "yes"}
