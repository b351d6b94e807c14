"""
Daily Summary Service

Builds the "today" view: headline scores, what is driving them, one
pattern badge, one simple fix, a short prediction, the day's completion
ring and a hint per supplement.

All thresholds are per-day totals (grams across today's meals), unlike the
per-meal averages the insights report uses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from schemas import UserContext
from services.checkin_trends import TrendDirection, mean_or_none, recent_check_ins
from services.gut_reference import gut_score_tier, meal_tags, mood_label
from services.insight_window import build_window, to_local


MAX_DRIVERS = 4
DAILY_MEAL_TARGET = 3

# Per-day thresholds (grams)
FIBER_GOOD_DAY = 10
SUGAR_OK_DAY = 15
SUGAR_ALERT_DAY = 25
SIMPLE_FIX_LOW_FIBER = 5
SIMPLE_FIX_HIGH_SUGAR = 20

SCORE_GOOD = 6
MIN_MEALS_FOR_PATTERNS = 3


GUT_LABELS = [
    (7, "Feeling Great!", "Your gut is thriving today 🌟", "#10B981"),
    (5, "Looking Good", "Keep up the healthy choices! 💪", "#34D399"),
    (3, "Needs Support", "Small adjustments can boost tomorrow 💛", "#F59E0B"),
    (0, "Needs Attention", "Let's focus on gut-friendly foods today 🤗", "#EF4444"),
]


@dataclass
class Driver:
    icon: str
    label: str
    value: str
    direction: TrendDirection

    def to_dict(self) -> Dict[str, str]:
        return {
            "icon": self.icon,
            "label": self.label,
            "value": self.value,
            "direction": self.direction.value,
        }


@dataclass
class DailySummary:
    date: str
    has_check_in: bool
    gut: Optional[float]
    energy: Optional[float]
    mood: Optional[float]
    gut_label: Optional[Dict[str, str]]
    gut_mood: Optional[Dict[str, str]]
    today_fiber: float
    today_sugar: float
    drivers: List[Driver] = field(default_factory=list)
    pattern_badge: Optional[Dict[str, str]] = None
    simple_fix: Dict[str, str] = field(default_factory=dict)
    prediction: Dict[str, str] = field(default_factory=dict)
    completion_percent: int = 0
    meals_logged: int = 0
    today_meals: List[Dict[str, Any]] = field(default_factory=list)
    supplement_hints: List[Dict[str, str]] = field(default_factory=list)
    is_new_user: bool = False
    has_enough_data: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "has_check_in": self.has_check_in,
            "scores": {
                "gut": _round(self.gut),
                "energy": _round(self.energy),
                "mood": _round(self.mood),
            },
            "gut_label": self.gut_label,
            "gut_mood": self.gut_mood,
            "today_fiber": round(self.today_fiber, 1),
            "today_sugar": round(self.today_sugar, 1),
            "drivers": [d.to_dict() for d in self.drivers],
            "pattern_badge": self.pattern_badge,
            "simple_fix": self.simple_fix,
            "prediction": self.prediction,
            "completion_percent": self.completion_percent,
            "meals_logged": self.meals_logged,
            "today_meals": self.today_meals,
            "supplement_hints": self.supplement_hints,
            "is_new_user": self.is_new_user,
            "has_enough_data": self.has_enough_data,
        }


def _round(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 1)


def gut_label(score: Optional[float]) -> Optional[Dict[str, str]]:
    """Friendly headline for a 1-10 gut score."""
    if score is None:
        return None
    for floor, label, sublabel, color in GUT_LABELS:
        if score >= floor:
            return {"label": label, "sublabel": sublabel, "color": color}
    return None


def completion_percent(meals_logged: int, has_check_in: bool, supplement_count: int) -> int:
    """Up to three meals plus the check-in, out of four tasks plus one per supplement."""
    total = DAILY_MEAL_TARGET + 1 + supplement_count
    done = min(meals_logged, DAILY_MEAL_TARGET) + (1 if has_check_in else 0)
    return int(round(done / total * 100))


def build_drivers(
    fiber: float,
    sugar: float,
    energy: Optional[float],
    mood: Optional[float],
) -> List[Driver]:
    up, down = TrendDirection.UP, TrendDirection.DOWN
    drivers = [
        Driver("🌱", "Fiber", f"{fiber:.0f}g", up if fiber >= FIBER_GOOD_DAY else down),
        Driver("🍬", "Sugar", f"{sugar:.0f}g", up if sugar <= SUGAR_OK_DAY else down),
    ]
    if energy is not None:
        drivers.append(Driver("⚡", "Energy", f"{energy:.1f}", up if energy >= SCORE_GOOD else down))
    if mood is not None:
        drivers.append(Driver("🧠", "Mood", f"{mood:.1f}", up if mood >= SCORE_GOOD else down))
    return drivers[:MAX_DRIVERS]


def pattern_badge(
    today_fiber: float,
    yesterday_fiber: float,
    today_sugar: float,
    yesterday_sugar: float,
    meals_in_two_days: int,
    energy: Optional[float],
    gut: Optional[float],
    bloating_days: int,
) -> Optional[Dict[str, str]]:
    # Low fiber needs something logged; two empty days say nothing about fiber.
    if meals_in_two_days and yesterday_fiber < FIBER_GOOD_DAY and today_fiber < FIBER_GOOD_DAY:
        return {"emoji": "🌱", "text": "Low Fiber Pattern", "tone": "warning"}
    if yesterday_sugar > SUGAR_ALERT_DAY or today_sugar > SUGAR_ALERT_DAY:
        return {"emoji": "🍬", "text": "High Sugar Alert", "tone": "error"}
    if energy is not None and energy < 4:
        return {"emoji": "😴", "text": "Energy Gap Detected", "tone": "warning"}
    if bloating_days >= 2:
        return {"emoji": "🎈", "text": "Bloating Pattern", "tone": "warning"}
    if gut is not None and gut >= 7:
        return {"emoji": "🌟", "text": "Great Week!", "tone": "success"}
    return None


def simple_fix(
    today_fiber: float,
    today_sugar: float,
    has_check_in: bool,
    meals_logged: int,
    energy: Optional[float],
    gut: Optional[float],
) -> Dict[str, str]:
    """One concrete action for right now."""
    if today_fiber < SIMPLE_FIX_LOW_FIBER:
        return {"action": "Add handful of nuts/seeds", "impact": "+5g fiber, better digestion", "icon": "🥜"}
    if today_sugar > SIMPLE_FIX_HIGH_SUGAR:
        return {"action": "Drink 300ml warm water now", "impact": "reduces sugar cravings", "icon": "💧"}
    if not has_check_in:
        return {"action": "Do a 30-sec check-in", "impact": "unlocks personalized insights", "icon": "📝"}
    if meals_logged < 2:
        return {"action": "Log your next meal", "impact": "AI learns your patterns", "icon": "📸"}
    if energy is not None and energy < 5:
        return {"action": "Take a 10-min walk outside", "impact": "+2 energy points (avg)", "icon": "🚶"}
    if gut is not None and gut < 5:
        return {"action": "Eat probiotic food (yogurt/kimchi)", "impact": "supports gut healing", "icon": "🦠"}
    return {"action": "Keep up great habits!", "impact": "you're on track 🎉", "icon": "✨"}


def prediction(today_fiber: float, yesterday_sugar: float, gut: Optional[float]) -> Dict[str, str]:
    if today_fiber < SIMPLE_FIX_LOW_FIBER:
        return {"time": "2-4 PM", "issue": "Low energy", "fix": "Add oats or fruits before lunch"}
    if yesterday_sugar > SUGAR_ALERT_DAY:
        return {"time": "Afternoon", "issue": "Sugar cravings", "fix": "Have protein-rich snack ready"}
    if gut is not None and gut < 4:
        return {"time": "Evening", "issue": "Digestive discomfort", "fix": "Eat light dinner, avoid dairy"}
    return {"time": "Today", "issue": "Good momentum!", "fix": "Maintain current habits"}


def supplement_hint(name: str, energy: Optional[float], mood: Optional[float]) -> Dict[str, str]:
    """Timing and consistency hint for one supplement, by name."""
    lowered = (name or "").lower()
    if "magnesium" in lowered:
        if energy is not None and energy >= 6:
            return {"text": "💤 Linked to better sleep on days you take it", "tone": "success"}
        return {"text": "⏰ Best: Evening • Helps sleep & relaxation", "tone": "neutral"}
    if "vitamin d" in lowered or "d3" in lowered:
        if mood is not None and mood < 5:
            return {"text": "⚠️ Low mood often occurs when missed", "tone": "warning"}
        return {"text": "☀️ Best: Morning with food • Supports mood", "tone": "neutral"}
    if "probiotic" in lowered:
        return {"text": "🦠 Directly supports gut • Best on empty stomach", "tone": "success"}
    if "omega" in lowered or "fish oil" in lowered:
        return {"text": "🧠 Reduces inflammation • Best with meals", "tone": "success"}
    if "b12" in lowered:
        if energy is not None and energy < 5:
            return {"text": "⚠️ Low energy = check B12 consistency", "tone": "warning"}
        return {"text": "⚡ Boosts energy • Best: Morning", "tone": "neutral"}
    return {"text": "📊 Track consistently to see patterns", "tone": "muted"}


def _meal_card(meal: Any) -> Dict[str, Any]:
    score = getattr(meal, "gut_score", None)
    tier = gut_score_tier(score) if score is not None else None
    return {
        "id": getattr(meal, "id", None),
        "meal_type": getattr(meal, "meal_type", None),
        "description": getattr(meal, "description", None),
        "gut_score": score,
        "tier": {"label": tier.label, "emoji": tier.emoji, "color": tier.color} if tier else None,
        "tags": [{"label": t.label, "emoji": t.emoji, "positive": t.positive} for t in meal_tags(meal)],
    }


def build_daily_summary(
    check_ins: Sequence[Any],
    meals: Sequence[Any],
    supplements: Sequence[Any],
    now: datetime,
    user: Optional[UserContext] = None,
) -> DailySummary:
    """
    Summarise today from the last week of records.

    Args:
        check_ins: Recent check-ins, today's included when it exists.
        meals: Meals from at least yesterday and today.
        supplements: The user's supplements; inactive ones are ignored.
        now: Reference time.
        user: Supplies the local timezone.
    """
    tz = user.local_tz() if user else None
    window = build_window(check_ins, meals, supplements, tz)
    today = to_local(now, tz).date()
    yesterday = today - timedelta(days=1)

    week = recent_check_ins(window.check_ins, today)
    todays = [c for c in week if c.day == today]
    today_check_in = todays[-1] if todays else None

    if today_check_in is not None:
        gut = today_check_in.gut
        energy = today_check_in.energy
        mood = today_check_in.mood
    else:
        gut = mean_or_none(c.gut for c in week)
        energy = mean_or_none(c.energy for c in week)
        mood = mean_or_none(c.mood for c in week)

    today_meals = [m for m in window.meals if m.day == today]
    yesterday_meals = [m for m in window.meals if m.day == yesterday]
    today_fiber = sum(m.fiber or 0.0 for m in today_meals)
    today_sugar = sum(m.sugar or 0.0 for m in today_meals)
    yesterday_fiber = sum(m.fiber or 0.0 for m in yesterday_meals)
    yesterday_sugar = sum(m.sugar or 0.0 for m in yesterday_meals)

    active_supplements = [s for s in window.supplements if getattr(s, "active", True)]
    has_check_in = today_check_in is not None
    week_start = today - timedelta(days=6)
    week_meal_count = sum(1 for m in window.meals if week_start <= m.day <= today)

    raw_today_meals = sorted(
        (m for m in meals if getattr(m, "logged_at", None) and to_local(m.logged_at, tz).date() == today),
        key=lambda m: to_local(m.logged_at, tz),
    )

    return DailySummary(
        date=today.isoformat(),
        has_check_in=has_check_in,
        gut=gut,
        energy=energy,
        mood=mood,
        gut_label=gut_label(gut),
        gut_mood=mood_label(gut) if gut is not None else None,
        today_fiber=today_fiber,
        today_sugar=today_sugar,
        drivers=build_drivers(today_fiber, today_sugar, energy, mood),
        pattern_badge=pattern_badge(
            today_fiber,
            yesterday_fiber,
            today_sugar,
            yesterday_sugar,
            len(today_meals) + len(yesterday_meals),
            energy,
            gut,
            sum(1 for c in week if "bloating" in c.symptoms),
        ),
        simple_fix=simple_fix(today_fiber, today_sugar, has_check_in, len(today_meals), energy, gut),
        prediction=prediction(today_fiber, yesterday_sugar, gut),
        completion_percent=completion_percent(len(today_meals), has_check_in, len(active_supplements)),
        meals_logged=len(today_meals),
        today_meals=[_meal_card(m) for m in raw_today_meals],
        supplement_hints=[
            {"name": s.name, **supplement_hint(s.name, energy, mood)} for s in active_supplements
        ],
        is_new_user=week_meal_count == 0 and not has_check_in,
        has_enough_data=week_meal_count >= MIN_MEALS_FOR_PATTERNS,
    )
