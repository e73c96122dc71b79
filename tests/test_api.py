"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from paisa.api import app, get_dashboard_service
from paisa.database import InMemoryKeyValueStore
from paisa.lunch_money import LunchMoneyError
from paisa.preferences import save_api_key
from paisa.services import DashboardService


@pytest.fixture
def transactions(make_transaction):
    return {
        2023: [
            make_transaction("2023-01-02", "-50", "Food"),
            make_transaction("2023-01-03", "-1000", "Rent"),
            make_transaction("2023-02-03", "-20", "Food"),
        ],
        2022: [make_transaction("2022-01-03", "-900", "Rent")],
    }


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def fake_client(fake_client_cls, transactions):
    return fake_client_cls(transactions)


@pytest.fixture
def http(app_config, store, fake_client):
    service = DashboardService(app_config, store, client_factory=lambda api_key: fake_client)
    app.dependency_overrides[get_dashboard_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(http):
    assert http.get("/health").json() == {"status": "ok"}


def test_connect_and_me(http):
    response = http.post("/connect", json={"api_key": "secret"})

    assert response.status_code == 200
    assert response.json()["budget_name"] == "Household"
    assert http.get("/me").json()["user_name"] == "Ada"


def test_connect_rejects_blank_key(http):
    assert http.post("/connect", json={"api_key": "  "}).status_code == 422


def test_rejected_key_maps_to_401(http, fake_client):
    fake_client.error = LunchMoneyError("Access token does not exist.", 401)

    response = http.post("/connect", json={"api_key": "bad"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Access token does not exist."


def test_upstream_failure_maps_to_502(http, store, fake_client):
    save_api_key(store, "secret")
    fake_client.error = LunchMoneyError("Lunch Money API error: 500", 500)

    assert http.get("/summary", params={"year_a": 2023, "year_b": 2022}).status_code == 502


def test_summary_requires_connection(http):
    assert http.get("/summary", params={"year_a": 2023, "year_b": 2022}).status_code == 401


def test_summary_payload(http, store):
    save_api_key(store, "secret")

    response = http.get("/summary", params={"year_a": 2023, "year_b": 2022})

    assert response.status_code == 200
    payload = response.json()
    assert payload["year_a"] == 2023
    assert payload["year_b"] == 2022
    assert payload["total_current_year"] == 1070
    assert payload["total_previous_year"] == 900
    assert payload["all_category_names"] == ["Food", "Rent"]
    assert payload["categories"] is None
    assert len(payload["daily_data"]) == 365
    first_week = payload["weekly_data"][0]
    assert first_week["current_year_transactions"][0]["date"] == "2023-01-02"


def test_summary_month_and_category_params(http, store):
    save_api_key(store, "secret")

    response = http.get(
        "/summary",
        params={"year_a": 2023, "year_b": 2022, "month": "1", "categories": "0"},
    )

    payload = response.json()
    assert payload["month"] == 1
    assert payload["total_days_in_view"] == 31
    assert payload["total_current_year"] == 50
    assert payload["category_totals"] == {"Food": 50, "Rent": 1000}
    assert payload["categories"] == "0"


def test_excluded_categories_settings(http, store):
    save_api_key(store, "secret")

    response = http.put("/settings/excluded-categories", json={"categories": ["Rent"]})
    assert response.json() == {"categories": ["Rent"]}
    assert http.get("/settings/excluded-categories").json() == {"categories": ["Rent"]}

    payload = http.get("/summary", params={"year_a": 2023, "year_b": 2022}).json()
    assert payload["total_current_year"] == 70
    assert payload["categories"] == "0"


def test_disconnect(http, store):
    save_api_key(store, "secret")

    assert http.post("/disconnect").json() == {"connected": False}
    assert http.get("/me").status_code == 401
