"""
Gut Reference Data

Fixed lookup tables shared by the insight services: the symptom
enumeration, gut-score tiers, mood labels and meal tags.

Free-text matching (foods inside a meal description, supplements by name)
lives here behind named lookups so a structured tag field can replace it
without touching any detector.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class Symptom:
    id: str
    label: str
    emoji: str


SYMPTOMS: List[Symptom] = [
    Symptom("bloating", "Bloating", "🎈"),
    Symptom("gas", "Gas", "💨"),
    Symptom("cramping", "Cramping", "😣"),
    Symptom("nausea", "Nausea", "🤢"),
    Symptom("heartburn", "Heartburn", "🔥"),
    Symptom("constipation", "Constipation", "🚫"),
    Symptom("diarrhea", "Diarrhea", "💧"),
    Symptom("fatigue", "Fatigue", "😴"),
    Symptom("headache", "Headache", "🤕"),
    Symptom("brain_fog", "Brain Fog", "🌫️"),
    Symptom("anxiety", "Anxiety", "😰"),
    Symptom("skin_issues", "Skin Issues", "🔴"),
]

SYMPTOMS_BY_ID: Dict[str, Symptom] = {s.id: s for s in SYMPTOMS}

# Meal gut-score bands
GUT_FRIENDLY_MIN_SCORE = 7
TO_AVOID_BELOW_SCORE = 5

SCORE_MIN = 1
SCORE_MAX = 10
MEAL_GUT_SCORE_MAX = 10.0


def symptom_label(symptom_id: str) -> str:
    symptom = SYMPTOMS_BY_ID.get(symptom_id)
    return symptom.label if symptom else symptom_id


def symptom_emoji(symptom_id: str, default: str = "⚠️") -> str:
    symptom = SYMPTOMS_BY_ID.get(symptom_id)
    return symptom.emoji if symptom else default


# =============================================================================
# VALUE COERCION
# =============================================================================

def clamp_score(value: Any) -> Optional[int]:
    """Read a 1-10 self-report score. Out-of-range values are clamped."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(SCORE_MIN, min(SCORE_MAX, score))


def non_negative(value: Any) -> Optional[float]:
    """Read an optional nutrition amount. Negative or unparseable means absent."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if amount != amount or amount < 0:  # NaN
        return None
    return amount


def meal_gut_score(value: Any) -> Optional[float]:
    score = non_negative(value)
    if score is None:
        return None
    return min(score, MEAL_GUT_SCORE_MAX)


# =============================================================================
# TEXT LOOKUPS
# =============================================================================

def description_mentions(description: Optional[str], keywords: Iterable[str]) -> bool:
    """True when any keyword appears in the meal description (case-insensitive)."""
    if not description:
        return False
    text = description.lower()
    return any(keyword in text for keyword in keywords)


def supplement_named(supplements: Sequence[Any], name: str) -> bool:
    """True when an active supplement's name contains `name`."""
    needle = name.lower()
    for supplement in supplements:
        if not getattr(supplement, "active", True):
            continue
        if needle in (getattr(supplement, "name", "") or "").lower():
            return True
    return False


# =============================================================================
# DISPLAY TIERS
# =============================================================================

@dataclass(frozen=True)
class GutScoreTier:
    label: str
    emoji: str
    color: str


def gut_score_tier(score: float) -> GutScoreTier:
    """Meal gut-score band (0-10 scale)."""
    if score >= 7:
        return GutScoreTier("Gut-Healing", "💚", "#10B981")
    if score >= 5:
        return GutScoreTier("OK - Improve", "💛", "#F59E0B")
    if score >= 3:
        return GutScoreTier("Gut-Stressing", "🧡", "#F97316")
    return GutScoreTier("Gut-Irritating", "❤️", "#FF6B6B")


MOOD_LABELS = {
    1: ("😫", "Terrible"),
    2: ("😞", "Bad"),
    3: ("😕", "Not Great"),
    4: ("😐", "Okay"),
    5: ("🙂", "Fine"),
    6: ("😊", "Good"),
    7: ("😄", "Great"),
    8: ("🤗", "Very Good"),
    9: ("😁", "Excellent"),
    10: ("🌟", "Amazing"),
}


def mood_label(score: float) -> Dict[str, str]:
    emoji, label = MOOD_LABELS[clamp_score(score) or SCORE_MIN]
    return {"emoji": emoji, "label": label}


@dataclass(frozen=True)
class MealTag:
    label: str
    emoji: str
    positive: bool


MAX_MEAL_TAGS = 3

_KEYWORD_TAGS = [
    (("yogurt", "curd", "kimchi", "fermented"), MealTag("Probiotic", "🦠", True)),
    (("oats", "roti", "wheat", "whole grain", "brown rice"), MealTag("Whole Grain", "🌾", True)),
    (("salad", "vegetables", "veggies", "spinach", "broccoli"), MealTag("Veggie Rich", "🥗", True)),
    (("fried", "deep fried", "samosa", "pakora"), MealTag("Fried", "🍳", False)),
    (("spicy", "chili", "hot"), MealTag("Spicy", "🌶️", False)),
    (("home", "homemade"), MealTag("Home-cooked", "🏠", True)),
]


def meal_tags(meal: Any) -> List[MealTag]:
    """Short descriptive tags for a meal card."""
    tags: List[MealTag] = []

    fiber = non_negative(getattr(meal, "fiber", None))
    protein = non_negative(getattr(meal, "protein", None))
    if fiber is not None and fiber >= 5:
        tags.append(MealTag("High Fiber", "🌱", True))
    if protein is not None and protein >= 20:
        tags.append(MealTag("Protein Rich", "💪", True))

    description = getattr(meal, "description", None)
    for keywords, tag in _KEYWORD_TAGS:
        if description_mentions(description, keywords):
            tags.append(tag)

    return tags[:MAX_MEAL_TAGS]
