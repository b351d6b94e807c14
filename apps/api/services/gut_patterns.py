"""
Gut Pattern Detection

Heuristic, non-causal correlations between logged meals, supplements and
daily check-ins. Each detector reads an InsightWindow and returns at most
one Pattern; detectors never depend on each other having run.

Also home to the food-sensitivity scan: a coincidence counter of trigger
foods followed by gut symptoms. Its output is a hint to the user, never a
validated finding.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from services.gut_reference import description_mentions, supplement_named, symptom_label
from services.insight_window import InsightWindow


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_PATTERN_OCCURRENCES = 2
MAX_PATTERNS = 5

LOW_FIBER_GRAMS = 5
LOW_ENERGY_NEXT_DAY = 4

DAIRY_KEYWORDS = ("milk", "cheese", "dairy", "yogurt")
DAIRY_SYMPTOMS = ("bloating", "gas")  # reference order; ties resolve to the first
DAIRY_LOOKBACK = timedelta(hours=12)

LATE_DINNER_HOUR = 21
LOW_GUT_NEXT_DAY = 5

MAGNESIUM_LOW_ENERGY = 3

HIGH_SUGAR_GRAMS = 20

SENSITIVITY_WINDOW = timedelta(hours=24)
MAX_FOOD_SENSITIVITIES = 5

TRIGGER_FOODS: List[Tuple[str, Tuple[str, ...]]] = [
    ("Dairy", ("dairy", "milk", "cheese", "yogurt", "ice cream")),
    ("Gluten", ("gluten", "bread", "pasta", "wheat")),
    ("Garlic/Onion", ("garlic", "onion")),
    ("Coffee", ("coffee", "caffeine")),
    ("Fried Foods", ("fried", "oily", "greasy")),
    ("Spicy Foods", ("spicy", "chili", "hot sauce")),
    ("Alcohol", ("alcohol", "wine", "beer")),
    ("Sugar", ("sugar", "candy", "soda")),
]

SENSITIVITY_SYMPTOMS = ("bloating", "gas", "nausea", "heartburn", "diarrhea")


@dataclass(frozen=True)
class Pattern:
    key: str
    icon: str
    text: str
    occurrence_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "icon": self.icon,
            "text": self.text,
            "occurrence_count": self.occurrence_count,
        }


@dataclass(frozen=True)
class FoodSensitivity:
    food: str
    symptom: str
    symptom_label: str
    occurrence_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "food": self.food,
            "symptom": self.symptom,
            "symptom_label": self.symptom_label,
            "occurrence_count": self.occurrence_count,
        }


# =============================================================================
# DETECTORS
# =============================================================================

def detect_low_fiber_energy(window: InsightWindow) -> Optional[Pattern]:
    """Low-fiber day followed by a low-energy check-in the next day."""
    low_fiber_days = {
        m.day for m in window.meals
        if m.fiber is not None and m.fiber < LOW_FIBER_GRAMS
    }
    if not low_fiber_days:
        return None

    hit_days = {
        c.day for c in window.check_ins
        if c.energy is not None
        and c.energy <= LOW_ENERGY_NEXT_DAY
        and c.day - timedelta(days=1) in low_fiber_days
    }
    if len(hit_days) < MIN_PATTERN_OCCURRENCES:
        return None
    return Pattern(
        key="low_fiber_energy",
        icon="🥬",
        text="Low fiber day → low energy the next day",
        occurrence_count=len(hit_days),
    )


def detect_dairy_symptom(window: InsightWindow) -> Optional[Pattern]:
    """
    Dairy meal within the 12 hours before a gas or bloating check-in.

    Only symptoms recurring on at least two check-ins are considered. When
    both qualify, the one with more matched meals is reported.
    """
    best: Optional[Tuple[str, int]] = None
    for symptom in DAIRY_SYMPTOMS:
        flagged = [c for c in window.check_ins if symptom in c.symptoms]
        if len(flagged) < MIN_PATTERN_OCCURRENCES:
            continue

        matched = set()
        for index, meal in enumerate(window.meals):
            if not description_mentions(meal.description, DAIRY_KEYWORDS):
                continue
            if any(c.at - DAIRY_LOOKBACK <= meal.at < c.at for c in flagged):
                matched.add(index)

        if matched and (best is None or len(matched) > best[1]):
            best = (symptom, len(matched))

    if best is None:
        return None
    symptom, count = best
    return Pattern(
        key=f"dairy_{symptom}",
        icon="🥛",
        text=f"Dairy → {symptom_label(symptom)} within 12 hours",
        occurrence_count=count,
    )


def detect_late_dinner_gut(window: InsightWindow) -> Optional[Pattern]:
    """Dinner logged at 21:00 or later, low gut score the following day."""
    late_dinner_days = {
        m.day for m in window.meals
        if m.meal_type == "dinner" and m.at.hour >= LATE_DINNER_HOUR
    }
    if not late_dinner_days:
        return None

    hits = [
        c for c in window.check_ins
        if c.gut is not None
        and c.gut <= LOW_GUT_NEXT_DAY
        and c.day - timedelta(days=1) in late_dinner_days
    ]
    if len(hits) < MIN_PATTERN_OCCURRENCES:
        return None
    return Pattern(
        key="late_dinner_gut",
        icon="🌙",
        text="Late dinner → low gut score next morning",
        occurrence_count=len(hits),
    )


def detect_magnesium_consistency(window: InsightWindow) -> Optional[Pattern]:
    # A reminder, not a causal claim.
    if not supplement_named(window.supplements, "magnesium"):
        return None
    low_energy = [
        c for c in window.check_ins
        if c.energy is not None and c.energy <= MAGNESIUM_LOW_ENERGY
    ]
    if len(low_energy) < MIN_PATTERN_OCCURRENCES:
        return None
    return Pattern(
        key="magnesium_consistency",
        icon="💊",
        text="Check magnesium consistency → linked to energy",
        occurrence_count=len(low_energy),
    )


def detect_high_sugar(window: InsightWindow) -> Optional[Pattern]:
    high_sugar = [
        m for m in window.meals
        if m.sugar is not None and m.sugar > HIGH_SUGAR_GRAMS
    ]
    if len(high_sugar) < MIN_PATTERN_OCCURRENCES:
        return None
    return Pattern(
        key="high_sugar",
        icon="🍬",
        text="High sugar meals → may cause inflammation",
        occurrence_count=len(high_sugar),
    )


PATTERN_DETECTORS: Tuple[Callable[[InsightWindow], Optional[Pattern]], ...] = (
    detect_low_fiber_energy,
    detect_dairy_symptom,
    detect_late_dinner_gut,
    detect_magnesium_consistency,
    detect_high_sugar,
)


def detect_patterns(window: InsightWindow, limit: int = MAX_PATTERNS) -> List[Pattern]:
    """Run every detector in declaration order; the list is not re-sorted."""
    patterns = []
    for detector in PATTERN_DETECTORS:
        pattern = detector(window)
        if pattern is not None:
            patterns.append(pattern)
    return patterns[:limit]


# =============================================================================
# FOOD SENSITIVITY SCAN
# =============================================================================

def scan_food_sensitivities(
    window: InsightWindow,
    limit: int = MAX_FOOD_SENSITIVITIES,
) -> List[FoodSensitivity]:
    """
    Count trigger-food meals followed by a symptom within 24 hours.

    A meal counts once per symptom when any check-in in (0h, 24h] after it
    carries that symptom. Pairs seen on at least two meals are reported in
    trigger-table then symptom-shortlist order.
    """
    results: List[FoodSensitivity] = []
    for food, keywords in TRIGGER_FOODS:
        food_meals = [m for m in window.meals if description_mentions(m.description, keywords)]
        if not food_meals:
            continue

        for symptom in SENSITIVITY_SYMPTOMS:
            flagged = [c for c in window.check_ins if symptom in c.symptoms]
            if not flagged:
                continue
            count = sum(
                1 for meal in food_meals
                if any(meal.at < c.at <= meal.at + SENSITIVITY_WINDOW for c in flagged)
            )
            if count >= MIN_PATTERN_OCCURRENCES:
                results.append(FoodSensitivity(
                    food=food,
                    symptom=symptom,
                    symptom_label=symptom_label(symptom),
                    occurrence_count=count,
                ))
    return results[:limit]
