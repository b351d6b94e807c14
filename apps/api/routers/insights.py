"""
Insights API Router

Gut-health insights computed on demand from the caller's recent records.
Nothing is cached or stored; every call recomputes from a fresh snapshot.

Endpoints:
- GET /v1/insights/report - Report over the last N days of backend data
- POST /v1/insights/report - Report over a snapshot supplied in the body
- GET /v1/insights/today - Daily summary for the home view
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.auth import get_user_context
from core.backend import BackendClient, get_backend
from core.config import settings
from schemas import InsightsSnapshot, UserContext
from services.daily_summary import build_daily_summary
from services.insight_window import window_bounds
from services.insights_engine import compute_report

router = APIRouter(prefix="/v1/insights", tags=["Insights"])

SUMMARY_WINDOW_DAYS = 7


@router.get("/report")
def get_report(
    days: int = Query(default=settings.INSIGHTS_WINDOW_DAYS, ge=1, le=90),
    top_symptoms: Optional[int] = Query(default=None, ge=1, le=12),
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    """Fetch the last `days` days from the backend and compute the report."""
    now = datetime.now(timezone.utc)
    start, end, start_at = window_bounds(now, days, user.local_tz())

    check_ins = backend.fetch_check_ins(user, start, end)
    meals = backend.fetch_meals(user, start_at, now)
    supplements = backend.fetch_supplements(user)

    report = compute_report(
        check_ins,
        meals,
        supplements,
        now,
        user=user,
        top_symptom_limit=top_symptoms or settings.TOP_SYMPTOM_LIMIT,
    )
    return report.to_dict()


@router.post("/report")
def post_report(
    snapshot: InsightsSnapshot,
    user: UserContext = Depends(get_user_context),
):
    """Compute the report over records the client already holds."""
    now = snapshot.now or datetime.now(timezone.utc)
    report = compute_report(
        snapshot.check_ins,
        snapshot.meals,
        snapshot.supplements,
        now,
        user=user,
        top_symptom_limit=snapshot.top_symptom_limit or settings.TOP_SYMPTOM_LIMIT,
    )
    return report.to_dict()


@router.get("/today")
def get_today(
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    now = datetime.now(timezone.utc)
    start, end, start_at = window_bounds(now, SUMMARY_WINDOW_DAYS, user.local_tz())

    summary = build_daily_summary(
        backend.fetch_check_ins(user, start, end),
        backend.fetch_meals(user, start_at, now),
        backend.fetch_supplements(user),
        now,
        user=user,
    )
    return summary.to_dict()
