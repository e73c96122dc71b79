"""Persisted dashboard choices and their query-parameter encodings.

Excluded categories are shared through URLs as the indices of the *included*
categories within the sorted category list, joined with ``.`` so the value
stays readable (commas get percent-encoded).
"""
from __future__ import annotations

import json
import logging
import re
from typing import Iterable, Optional, Sequence

from .database import KeyValueStore

logger = logging.getLogger(__name__)

API_KEY_STORAGE_KEY = "lm_api_key"
CATEGORY_FILTER_STORAGE_KEY = "paisa_excluded_categories"
CATEGORIES_SEP = "."

_CATEGORIES_SPLIT = re.compile(r"[.,]")
_LEADING_INTEGER = re.compile(r"[+-]?\d+")


# ---------------------------------------------------------------------------
# Stored values
# ---------------------------------------------------------------------------

def load_api_key(store: KeyValueStore) -> Optional[str]:
    return store.get(API_KEY_STORAGE_KEY) or None


def save_api_key(store: KeyValueStore, api_key: str) -> None:
    store.set(API_KEY_STORAGE_KEY, api_key)


def clear_api_key(store: KeyValueStore) -> None:
    store.remove(API_KEY_STORAGE_KEY)


def load_excluded_categories(store: KeyValueStore) -> list[str]:
    """Return the stored exclusion list, or ``[]`` when it is missing or invalid."""

    raw = store.get(CATEGORY_FILTER_STORAGE_KEY)
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed excluded-categories preference")
        return []
    if isinstance(parsed, list) and all(isinstance(item, str) for item in parsed):
        return parsed
    return []


def save_excluded_categories(store: KeyValueStore, names: Iterable[str]) -> None:
    store.set(CATEGORY_FILTER_STORAGE_KEY, json.dumps(list(names)))


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------

def parse_month_param(param: Optional[str]) -> Optional[int]:
    """Return the month 1-12, or ``None`` for "all months" and invalid input."""

    if param is None:
        return None
    raw = param.strip().lower()
    if raw in {"", "all"}:
        return None
    # Leading digits win, so "3.5" and "1abc" read as 3 and 1
    match = _LEADING_INTEGER.match(raw)
    if match is None:
        return None
    parsed = int(match.group())
    if not 1 <= parsed <= 12:
        return None
    return parsed


def build_categories_param(excluded: Iterable[str], all_category_names: Sequence[str]) -> Optional[str]:
    """Encode the included category indices; ``None`` when all are included."""

    if not all_category_names:
        return None
    excluded_set = set(excluded)
    included = [str(index) for index, name in enumerate(all_category_names) if name not in excluded_set]
    if len(included) == len(all_category_names):
        return None
    return CATEGORIES_SEP.join(included)


def parse_categories_param(param: Optional[str], all_category_names: Sequence[str]) -> Optional[list[str]]:
    """Decode a categories parameter into the excluded category names.

    An empty value means every category is excluded.  ``None`` is returned
    when there is nothing to decode, letting callers fall back to the stored
    preference.
    """

    if param is None or not all_category_names:
        return None
    if param.strip() == "":
        return list(all_category_names)
    included: set[str] = set()
    for part in _CATEGORIES_SPLIT.split(param):
        try:
            index = int(part.strip())
        except ValueError:
            continue
        if 0 <= index < len(all_category_names):
            included.add(all_category_names[index])
    return [name for name in all_category_names if name not in included]
