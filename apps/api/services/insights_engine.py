"""
Insights Engine

Builds the InsightsReport for one user from a snapshot of check-ins, meals
and supplements the caller has already fetched.

The engine is pure: no network, no clock reads, no mutation of its inputs.
`now` is always passed in, so the same snapshot and `now` give an equal
report. Missing or malformed data degrades to None/empty fields instead of
raising.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence
import logging

from schemas import UserContext
from services.checkin_trends import (
    Averages,
    DayScore,
    DEFAULT_TOP_SYMPTOM_LIMIT,
    Momentum,
    SymptomCount,
    TrendDirection,
    DAILY_MOMENTUM_THRESHOLD,
    TWO_WEEK_TREND_THRESHOLD,
    best_day,
    worst_day,
    classify_trend,
    compute_averages,
    compute_momentum,
    daily_scores,
    mean_or_none,
    top_symptoms,
)
from services.gut_patterns import (
    FoodSensitivity,
    Pattern,
    detect_patterns,
    scan_food_sensitivities,
)
from services.gut_reference import (
    GUT_FRIENDLY_MIN_SCORE,
    TO_AVOID_BELOW_SCORE,
    symptom_emoji,
)
from services.insight_window import InsightWindow, WindowMeal, build_window, to_local

logger = logging.getLogger(__name__)


MAX_RECOMMENDATIONS = 3

# Recommendation cascade thresholds
LOW_FIBER_PER_MEAL = 5
HIGH_SUGAR_PER_MEAL = 15
LOW_GUT_AVERAGE = 5
LOW_ENERGY_AVERAGE = 5

# Top driver thresholds
DRIVER_MIN_MEALS = 3
DRIVER_MIN_SYMPTOM_COUNT = 3
DRIVER_LOW_ENERGY = 4

FALLBACK_RECOMMENDATION = "Keep up your healthy habits! Your patterns look good."


@dataclass(frozen=True)
class MealQuality:
    meal_count: int
    avg_gut_score: Optional[float]  # over meals that carry a score
    avg_fiber: Optional[float]  # grams per meal; missing fiber counts as 0
    avg_sugar: Optional[float]
    gut_friendly_count: int
    to_avoid_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meal_count": self.meal_count,
            "avg_gut_score": None if self.avg_gut_score is None else round(self.avg_gut_score, 2),
            "avg_fiber": None if self.avg_fiber is None else round(self.avg_fiber, 2),
            "avg_sugar": None if self.avg_sugar is None else round(self.avg_sugar, 2),
            "gut_friendly_count": self.gut_friendly_count,
            "to_avoid_count": self.to_avoid_count,
        }


@dataclass(frozen=True)
class TopDriver:
    key: str
    emoji: str
    label: str
    impact: str
    detail: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "key": self.key,
            "emoji": self.emoji,
            "label": self.label,
            "impact": self.impact,
            "detail": self.detail,
        }


@dataclass
class InsightsReport:
    generated_at: datetime
    check_in_count: int
    averages: Averages
    trend: TrendDirection
    momentum: Momentum
    top_symptoms: List[SymptomCount] = field(default_factory=list)
    patterns: List[Pattern] = field(default_factory=list)
    food_sensitivities: List[FoodSensitivity] = field(default_factory=list)
    meal_quality: Optional[MealQuality] = None
    recommendations: List[str] = field(default_factory=list)
    top_driver: Optional[TopDriver] = None
    best_day: Optional[DayScore] = None
    worst_day: Optional[DayScore] = None
    daily_scores: List[DayScore] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "check_in_count": self.check_in_count,
            "averages": self.averages.to_dict(),
            "trend": self.trend.value,
            "momentum": self.momentum.to_dict(),
            "top_symptoms": [s.to_dict() for s in self.top_symptoms],
            "patterns": [p.to_dict() for p in self.patterns],
            "food_sensitivities": [f.to_dict() for f in self.food_sensitivities],
            "meal_quality": self.meal_quality.to_dict() if self.meal_quality else None,
            "recommendations": list(self.recommendations),
            "top_driver": self.top_driver.to_dict() if self.top_driver else None,
            "best_day": self.best_day.to_dict() if self.best_day else None,
            "worst_day": self.worst_day.to_dict() if self.worst_day else None,
            "daily_scores": [d.to_dict() for d in self.daily_scores],
        }


def compute_meal_quality(meals: Sequence[WindowMeal]) -> MealQuality:
    scored = [m.gut_score for m in meals if m.gut_score is not None]
    return MealQuality(
        meal_count=len(meals),
        avg_gut_score=mean_or_none(scored),
        avg_fiber=mean_or_none(m.fiber or 0.0 for m in meals),
        avg_sugar=mean_or_none(m.sugar or 0.0 for m in meals),
        gut_friendly_count=sum(1 for s in scored if s >= GUT_FRIENDLY_MIN_SCORE),
        to_avoid_count=sum(1 for s in scored if s < TO_AVOID_BELOW_SCORE),
    )


def build_recommendations(
    averages: Averages,
    meal_quality: MealQuality,
    symptoms: Sequence[SymptomCount],
    limit: int = MAX_RECOMMENDATIONS,
) -> List[str]:
    """
    Fixed rule cascade. Every rule is evaluated in order and may fire; a
    rule whose input is missing does not fire. Never returns an empty list.
    """
    recommendations = []

    if meal_quality.avg_fiber is not None and meal_quality.avg_fiber < LOW_FIBER_PER_MEAL:
        recommendations.append("Increase fiber: Add oats, berries, or leafy greens to each meal")
    if meal_quality.avg_sugar is not None and meal_quality.avg_sugar > HIGH_SUGAR_PER_MEAL:
        recommendations.append("Reduce sugar: Swap processed snacks for whole foods")
    if (
        averages.gut is not None
        and averages.gut < LOW_GUT_AVERAGE
        and any(s.symptom == "bloating" for s in symptoms)
    ):
        recommendations.append("For bloating: Eat slowly, avoid carbonated drinks, try peppermint tea")
    if averages.energy is not None and averages.energy < LOW_ENERGY_AVERAGE:
        recommendations.append("Boost energy: Check B12 levels and sleep quality")
    if meal_quality.to_avoid_count > meal_quality.gut_friendly_count:
        recommendations.append("Your meals trend low on gut-friendliness. Try more whole foods.")

    if not recommendations:
        return [FALLBACK_RECOMMENDATION]
    return recommendations[:limit]


def pick_top_driver(
    averages: Averages,
    meal_quality: MealQuality,
    symptoms: Sequence[SymptomCount],
) -> Optional[TopDriver]:
    """The single factor most worth the user's attention, or None."""
    fiber = meal_quality.avg_fiber
    if fiber is not None and fiber < LOW_FIBER_PER_MEAL and meal_quality.meal_count >= DRIVER_MIN_MEALS:
        return TopDriver(
            key="low_fiber",
            emoji="🥬",
            label="Low Fiber Intake",
            impact="Impacting: Gut, Energy, Mood",
            detail=f"Avg {fiber:.0f}g/meal (aim for 8g+)",
        )

    sugar = meal_quality.avg_sugar
    if sugar is not None and sugar > HIGH_SUGAR_PER_MEAL:
        return TopDriver(
            key="high_sugar",
            emoji="🍬",
            label="High Sugar Consumption",
            impact="Impacting: Gut inflammation, Energy crashes",
            detail=f"Avg {sugar:.0f}g/meal (aim for <10g)",
        )

    if symptoms and symptoms[0].count >= DRIVER_MIN_SYMPTOM_COUNT:
        top = symptoms[0]
        return TopDriver(
            key=f"frequent_{top.symptom}",
            emoji=symptom_emoji(top.symptom),
            label=f"Frequent {top.label}",
            impact="Impacting: Daily comfort, Quality of life",
            detail=f"Occurred {top.count} times this week",
        )

    if averages.energy is not None and averages.energy < DRIVER_LOW_ENERGY:
        return TopDriver(
            key="low_energy",
            emoji="😴",
            label="Low Energy Pattern",
            impact="Impacting: Productivity, Mood",
            detail=f"Avg energy {averages.energy:.1f}/10",
        )

    return None


def report_from_window(
    window: InsightWindow,
    now: datetime,
    *,
    today: Optional[date] = None,
    top_symptom_limit: int = DEFAULT_TOP_SYMPTOM_LIMIT,
    trend_threshold: float = TWO_WEEK_TREND_THRESHOLD,
    momentum_threshold: float = DAILY_MOMENTUM_THRESHOLD,
) -> InsightsReport:
    today = today or now.date()
    averages = compute_averages(window.check_ins)
    symptoms = top_symptoms(window.check_ins, top_symptom_limit)
    meal_quality = compute_meal_quality(window.meals)

    return InsightsReport(
        generated_at=now,
        check_in_count=len(window.check_ins),
        averages=averages,
        trend=classify_trend(window.check_ins, trend_threshold),
        momentum=compute_momentum(window.check_ins, today, momentum_threshold),
        top_symptoms=symptoms,
        patterns=detect_patterns(window),
        food_sensitivities=scan_food_sensitivities(window),
        meal_quality=meal_quality,
        recommendations=build_recommendations(averages, meal_quality, symptoms),
        top_driver=pick_top_driver(averages, meal_quality, symptoms),
        best_day=best_day(window.check_ins),
        worst_day=worst_day(window.check_ins),
        daily_scores=daily_scores(window.check_ins),
    )


def compute_report(
    check_ins: Sequence[Any],
    meals: Sequence[Any],
    supplements: Sequence[Any],
    now: datetime,
    *,
    user: Optional[UserContext] = None,
    top_symptom_limit: int = DEFAULT_TOP_SYMPTOM_LIMIT,
    trend_threshold: float = TWO_WEEK_TREND_THRESHOLD,
    momentum_threshold: float = DAILY_MOMENTUM_THRESHOLD,
) -> InsightsReport:
    """
    Compute the insights report for a pre-filtered window of records.

    Args:
        check_ins: Daily check-ins, any order.
        meals: Logged meals, any order.
        supplements: The user's supplements.
        now: Reference time for the report. Never read from the clock here.
        user: Supplies the timezone used for local-time comparisons.
        top_symptom_limit: How many symptoms to rank.
        trend_threshold: Minimum half-to-half gut change to call a trend.
        momentum_threshold: The same minimum for the 7-day momentum.

    Returns:
        InsightsReport; structurally complete even for empty input.
    """
    tz = user.local_tz() if user else None
    window = build_window(check_ins or [], meals or [], supplements or [], tz)
    report = report_from_window(
        window,
        now,
        today=to_local(now, tz).date(),
        top_symptom_limit=top_symptom_limit,
        trend_threshold=trend_threshold,
        momentum_threshold=momentum_threshold,
    )

    logger.debug(
        f"Insights report: {report.check_in_count} check-ins, {len(window.meals)} meals, "
        f"trend={report.trend.value}, patterns={len(report.patterns)}, "
        f"sensitivities={len(report.food_sensitivities)}"
    )
    return report
