"""Dashboard endpoints for branch performance and company history."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sales_dashboard.core.auth import RequestUserContext, get_current_user_context
from sales_dashboard.core.config import Settings, get_app_settings
from sales_dashboard.db.dependencies import get_db_session
from sales_dashboard.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboards"])


def _service(db: Session, settings: Settings) -> DashboardService:
    return DashboardService.from_session(db, settings)


def _resolve_period(year: int | None, month: int | None) -> tuple[int, int]:
    today = date.today()
    return (today.year if year is None else year, today.month if month is None else month)


@router.get("")
def get_dashboard(
    year: int | None = None,
    month: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, object]:
    service = _service(db, settings)
    year, month = _resolve_period(year, month)
    branches = service.dashboard(year, month)
    return {
        "year": year,
        "month": month,
        "branches": [service.serialize_branch(row) for row in branches],
        "company": service.serialize_company(service.company(branches)),
    }


@router.get("/history")
def get_dashboard_history(
    year: int | None = None,
    month: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, object]:
    service = _service(db, settings)
    year, month = _resolve_period(year, month)
    periods = service.history(year, month)
    return {
        "year": year,
        "month": month,
        "periods": [service.serialize_period(row) for row in periods],
    }
