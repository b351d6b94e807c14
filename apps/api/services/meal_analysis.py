"""
Meal Analysis

Calls the external AI meal-analysis endpoint and normalises its answer
into a NutritionEstimate.

Fails gracefully: when the endpoint is not configured the local keyword
table is used (source "local"); when it errors, times out or returns
nothing usable the same table is used (source "fallback").
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from core.config import settings
from services.gut_reference import MEAL_GUT_SCORE_MAX, non_negative
from services.meal_estimation import NutritionEstimate, estimate_nutrition, local_analysis, local_tips

logger = logging.getLogger(__name__)


def _coerce_tips(*candidates: Any) -> Optional[List[str]]:
    for candidate in candidates:
        if isinstance(candidate, list):
            return [str(t) for t in candidate if t]
    return None


def _first_text(*candidates: Any) -> Optional[str]:
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def parse_analysis_response(data: Dict[str, Any], description: str) -> Optional[NutritionEstimate]:
    """
    Read the analysis service payload.

    Accepts both the nested shape ({"success", "analysis": {"nutrition",
    "gutScore", "gutNotes", "tips"}}) and a flat one. Returns None when the
    payload carries no real values.
    """
    if not isinstance(data, dict):
        return None
    analysis = data.get("analysis")
    if not isinstance(analysis, dict):
        analysis = data
    nutrition = analysis.get("nutrition")
    if not isinstance(nutrition, dict):
        nutrition = analysis

    calories = non_negative(nutrition.get("calories"))
    gut_score = non_negative(analysis.get("gutScore") or analysis.get("gut_score") or data.get("gut_score"))
    has_real_data = (
        data.get("success") is True
        or (calories is not None and calories > 0)
        or (gut_score is not None and gut_score > 0)
    )
    if not has_real_data:
        return None

    food_name = _first_text(data.get("foodName"), data.get("food_name"), analysis.get("foodName"))
    text = food_name or description
    if gut_score is None or gut_score <= 0:
        gut_score = 5.0

    return NutritionEstimate(
        calories=calories or 0.0,
        protein=non_negative(nutrition.get("protein")) or 0.0,
        carbs=non_negative(nutrition.get("carbs")) or 0.0,
        fat=non_negative(nutrition.get("fat")) or 0.0,
        fiber=non_negative(nutrition.get("fiber")) or 0.0,
        sugar=non_negative(nutrition.get("sugar")),
        gut_score=min(gut_score, MEAL_GUT_SCORE_MAX),
        ai_analysis=_first_text(
            analysis.get("gutNotes"),
            analysis.get("description"),
            analysis.get("analysis"),
        ) or local_analysis(text),
        ai_tips=_coerce_tips(analysis.get("tips"), analysis.get("recommendations")) or local_tips(text),
        source="ai",
        food_name=food_name,
    )


def _fallback(description: str, meal_type: str) -> NutritionEstimate:
    estimate = estimate_nutrition(description, meal_type)
    estimate.source = "fallback"
    return estimate


def analyze_meal(
    description: str,
    meal_type: str = "snack",
    photo_base64: Optional[str] = None,
    access_token: Optional[str] = None,
    url: Optional[str] = None,
) -> NutritionEstimate:
    """
    Analyse a meal description (and optional photo).

    Never raises for service failures; the caller always gets an estimate.
    """
    url = url or settings.MEAL_ANALYSIS_URL
    description = (description or "").strip()
    if not url:
        return estimate_nutrition(description, meal_type)

    body: Dict[str, Any] = {
        "description": description or "Analyze this meal",
        "meal_type": meal_type,
    }
    if photo_base64:
        body["image_base64"] = photo_base64

    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if settings.SUPABASE_ANON_KEY:
        headers["apikey"] = settings.SUPABASE_ANON_KEY

    try:
        r = requests.post(url, json=body, headers=headers, timeout=settings.EXTERNAL_API_TIMEOUT)
    except requests.exceptions.RequestException as e:
        logger.warning(f"Meal analysis request failed: {e}")
        return _fallback(description, meal_type)

    if not r.ok:
        logger.warning(f"Meal analysis returned {r.status_code}; using local estimate")
        return _fallback(description, meal_type)

    try:
        data = r.json()
    except ValueError:
        logger.warning("Meal analysis returned invalid JSON; using local estimate")
        return _fallback(description, meal_type)

    estimate = parse_analysis_response(data, description)
    if estimate is None:
        logger.info("Meal analysis returned no usable values; using local estimate")
        return _fallback(description, meal_type)
    return estimate
