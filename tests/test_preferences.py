"""Tests for stored preferences and query-parameter codecs."""

from datetime import date

import pytest

from paisa.aggregation import summarize
from paisa.database import InMemoryKeyValueStore
from paisa.preferences import (
    CATEGORY_FILTER_STORAGE_KEY,
    build_categories_param,
    clear_api_key,
    load_api_key,
    load_excluded_categories,
    parse_categories_param,
    parse_month_param,
    save_api_key,
    save_excluded_categories,
)

CATEGORIES = ["Food", "Gas", "Rent", "Uncategorized"]


class TestStoredValues:
    def test_api_key_round_trip(self):
        store = InMemoryKeyValueStore()

        save_api_key(store, "secret")
        assert load_api_key(store) == "secret"

        clear_api_key(store)
        assert load_api_key(store) is None

    def test_excluded_categories_round_trip(self):
        store = InMemoryKeyValueStore()

        save_excluded_categories(store, ["Rent", "Gas"])

        assert load_excluded_categories(store) == ["Rent", "Gas"]

    @pytest.mark.parametrize("raw", ["not json", '{"a": 1}', '[1, 2]', ""])
    def test_invalid_excluded_categories_load_as_empty(self, raw):
        store = InMemoryKeyValueStore({CATEGORY_FILTER_STORAGE_KEY: raw})

        assert load_excluded_categories(store) == []


class TestMonthParam:
    @pytest.mark.parametrize("raw,expected", [("1", 1), (" 12 ", 12), ("07", 7)])
    def test_valid_months(self, raw, expected):
        assert parse_month_param(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "all", "ALL", "0", "13", "june"])
    def test_everything_else_means_all_months(self, raw):
        assert parse_month_param(raw) is None


class TestCategoriesParam:
    def test_nothing_excluded(self):
        assert build_categories_param([], CATEGORIES) is None

    def test_no_categories(self):
        assert build_categories_param(["Rent"], []) is None
        assert parse_categories_param("0.1", []) is None

    def test_encodes_included_indices(self):
        assert build_categories_param(["Gas", "Rent"], CATEGORIES) == "0.3"

    def test_everything_excluded(self):
        assert build_categories_param(CATEGORIES, CATEGORIES) == ""
        assert parse_categories_param("", CATEGORIES) == CATEGORIES

    def test_decodes_excluded_names(self):
        assert parse_categories_param("0.3", CATEGORIES) == ["Gas", "Rent"]

    def test_accepts_legacy_comma_separator_and_ignores_bad_indices(self):
        assert parse_categories_param("0,3,9,x,-1", CATEGORIES) == ["Gas", "Rent"]

    def test_absent_param(self):
        assert parse_categories_param(None, CATEGORIES) is None


class TestLeadingDigitMonths:
    @pytest.mark.parametrize("raw,expected", [("3.5", 3), ("1abc", 1), ("+4", 4), ("12th", 12)])
    def test_leading_integer_is_used(self, raw, expected):
        assert parse_month_param(raw) == expected

    @pytest.mark.parametrize("raw", ["abc1", "-1", "13.2", ".5"])
    def test_without_valid_leading_integer(self, raw):
        assert parse_month_param(raw) is None


def test_categories_param_follows_engine_ordering(make_transaction):
    current = [
        make_transaction("2023-01-05", "-10", "bills"),
        make_transaction("2023-01-05", "-10", "Food"),
    ]
    names = list(summarize(current, [], 2023, 2022, today=date(2030, 1, 1)).all_category_names)

    assert names == ["bills", "Food"]
    assert build_categories_param(["bills"], names) == "1"
    assert parse_categories_param("1", names) == ["bills"]
