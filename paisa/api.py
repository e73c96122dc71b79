"""FastAPI application exposing the paisa backend."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import preferences
from .config import load_config
from .database import SQLiteKeyValueStore
from .lunch_money import LunchMoneyError
from .models import LunchMoneyUser
from .services import DashboardService, NotConnectedError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Initialise shared services once and reuse them across requests."""

    config = load_config()
    store = SQLiteKeyValueStore(config.database_file)
    store.initialise_schema()
    if config.lunch_money_api_key and not preferences.load_api_key(store):
        preferences.save_api_key(store, config.lunch_money_api_key)
    dashboard_service = DashboardService(config, store)

    app.state.config = config
    app.state.store = store
    app.state.dashboard = dashboard_service

    yield

    store.close()


app = FastAPI(lifespan=lifespan, title="paisa backend", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ConnectRequest(BaseModel):
    api_key: str


class ExcludedCategoriesRequest(BaseModel):
    categories: list[str]


# Dependency injection ------------------------------------------------------

def get_dashboard_service() -> DashboardService:
    service: DashboardService = app.state.dashboard
    return service


def _upstream_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotConnectedError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, LunchMoneyError) and exc.status_code in {401, 403}:
        return HTTPException(status_code=401, detail=str(exc))
    logger.warning("Lunch Money request failed: %s", exc)
    return HTTPException(status_code=502, detail=str(exc))


def _user_payload(user: LunchMoneyUser) -> dict[str, str]:
    return {
        "user_name": user.user_name,
        "budget_name": user.budget_name,
        "primary_currency": user.primary_currency,
    }


# Routes --------------------------------------------------------------------


@app.get("/health")
def health_check() -> dict[str, str]:
    """Return a basic heartbeat payload for monitoring purposes."""

    return {"status": "ok"}


@app.post("/connect")
def connect(
    body: ConnectRequest,
    dashboard: Annotated[DashboardService, Depends(get_dashboard_service)],
) -> dict[str, str]:
    """Validate and store a Lunch Money API key."""

    if not body.api_key.strip():
        raise HTTPException(status_code=422, detail="API key must not be empty.")
    try:
        user = dashboard.connect(body.api_key)
    except LunchMoneyError as exc:
        raise _upstream_error(exc) from exc
    return _user_payload(user)


@app.post("/disconnect")
def disconnect(dashboard: Annotated[DashboardService, Depends(get_dashboard_service)]) -> dict[str, bool]:
    dashboard.disconnect()
    return {"connected": False}


@app.get("/me")
def current_user(dashboard: Annotated[DashboardService, Depends(get_dashboard_service)]) -> dict[str, str]:
    try:
        user = dashboard.current_user()
    except (LunchMoneyError, NotConnectedError) as exc:
        raise _upstream_error(exc) from exc
    return _user_payload(user)


@app.post("/refresh")
def refresh(dashboard: Annotated[DashboardService, Depends(get_dashboard_service)]) -> dict[str, bool]:
    dashboard.refresh()
    return {"refreshed": True}


@app.get("/summary")
def spend_summary(
    dashboard: Annotated[DashboardService, Depends(get_dashboard_service)],
    year_a: Annotated[Optional[int], Query(ge=1900, le=9999)] = None,
    year_b: Annotated[Optional[int], Query(ge=1900, le=9999)] = None,
    month: Annotated[Optional[str], Query(description="1-12 or 'all'")] = None,
    categories: Annotated[Optional[str], Query(description="Included category indices, '.'-separated")] = None,
) -> dict[str, object]:
    """Compare spending of ``year_a`` with ``year_b`` (defaults: this year vs last)."""

    this_year = date.today().year
    year_a = year_a or this_year
    year_b = year_b or year_a - 1
    selected_month = preferences.parse_month_param(month)

    try:
        all_names = dashboard.category_names(year_a, year_b)
        excluded = preferences.parse_categories_param(categories, all_names)
        summary = dashboard.compare(year_a, year_b, month=selected_month, excluded=excluded)
    except (LunchMoneyError, NotConnectedError) as exc:
        raise _upstream_error(exc) from exc

    payload = summary.to_dict()
    payload["year_a"] = year_a
    payload["year_b"] = year_b
    payload["categories"] = preferences.build_categories_param(
        excluded if excluded is not None else dashboard.excluded_categories(),
        all_names,
    )
    return payload


@app.get("/settings/excluded-categories")
def get_excluded_categories(
    dashboard: Annotated[DashboardService, Depends(get_dashboard_service)],
) -> dict[str, list[str]]:
    return {"categories": dashboard.excluded_categories()}


@app.put("/settings/excluded-categories")
def set_excluded_categories(
    body: ExcludedCategoriesRequest,
    dashboard: Annotated[DashboardService, Depends(get_dashboard_service)],
) -> dict[str, list[str]]:
    return {"categories": dashboard.set_excluded_categories(body.categories)}
