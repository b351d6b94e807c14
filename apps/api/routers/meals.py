"""
Meals API Router

List, log, analyse and delete meals. Analysis never fails the request: when the
AI service is missing or broken a local estimate is returned instead.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status

from core.auth import get_user_context
from core.backend import BackendClient, get_backend
from core.exceptions import NotFoundError
from core.logging import log_fields
from schemas import Meal, MealAnalysisRequest, MealCreate, MealPeriod, UserContext
from services.gut_reference import gut_score_tier
from services.insight_window import history_bounds
from services.meal_analysis import analyze_meal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/meals", tags=["Meals"])


def _meal_out(meal: Meal) -> dict:
    result = meal.model_dump(mode="json")
    if meal.gut_score is not None:
        tier = gut_score_tier(meal.gut_score)
        result["gut_tier"] = {"label": tier.label, "emoji": tier.emoji, "color": tier.color}
    return result


@router.get("")
def list_meals(
    period: MealPeriod = Query(default="today", alias="filter"),
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    """Meal history, newest first, for today, the last week, the last month or all time."""
    start, end = history_bounds(period, datetime.now(timezone.utc), user.local_tz())
    return [_meal_out(meal) for meal in backend.list_meals(user, start, end)]


@router.post("/analyze")
def analyze(
    request: MealAnalysisRequest,
    user: UserContext = Depends(get_user_context),
):
    estimate = analyze_meal(
        request.description,
        request.meal_type,
        photo_base64=request.photo_base64,
        access_token=user.access_token,
    )
    logger.info(
        f"Meal analysed ({estimate.source})",
        extra=log_fields(user_id=user.user_id, source=estimate.source),
    )
    return estimate.to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
def log_meal(
    meal: MealCreate,
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    payload = meal.model_dump(mode="json", exclude_none=True)
    payload["description"] = meal.description.strip()
    if meal.logged_at is None:
        payload["logged_at"] = datetime.now(timezone.utc).isoformat()

    return _meal_out(backend.add_meal(user, payload))


@router.delete("/{meal_id}")
def delete_meal(
    meal_id: str,
    user: UserContext = Depends(get_user_context),
    backend: BackendClient = Depends(get_backend),
):
    if not backend.delete_meal(user, meal_id):
        raise NotFoundError("Meal", meal_id)
    return {"deleted": True, "id": meal_id}
