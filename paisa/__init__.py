"""paisa: year-over-year spend comparison backed by the Lunch Money API."""
from __future__ import annotations

from .aggregation import summarize
from .models import SpendSummary, Transaction

__all__ = ["summarize", "SpendSummary", "Transaction"]
