"""
Local Meal Estimation

Keyword-table nutrition estimate used when the AI analysis service is not
configured or fails. Best-effort only; the numbers are rough per-portion
values for common foods.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from services.gut_reference import gut_score_tier


MAX_TIPS = 3
DEFAULT_GUT_SCORE = 5.0


@dataclass(frozen=True)
class FoodProfile:
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float
    sugar: float
    gut_score: float


def _food(cal, protein, carbs, fat, fiber, sugar, gut) -> FoodProfile:
    return FoodProfile(cal, protein, carbs, fat, fiber, sugar, gut)


FOOD_DATABASE: Dict[str, FoodProfile] = {
    # Proteins
    "chicken": _food(165, 31, 0, 4, 0, 0, 7),
    "egg": _food(78, 6, 1, 5, 0, 0, 7),
    "fish": _food(150, 26, 0, 5, 0, 0, 8),
    "salmon": _food(208, 20, 0, 13, 0, 0, 9),
    "beef": _food(250, 26, 0, 15, 0, 0, 5),
    "tofu": _food(144, 15, 4, 8, 2, 1, 7),
    # Grains
    "rice": _food(206, 4, 45, 0, 1, 0, 6),
    "oats": _food(150, 5, 27, 3, 4, 1, 9),
    "bread": _food(79, 3, 15, 1, 1, 2, 5),
    "pasta": _food(220, 8, 43, 1, 2, 1, 5),
    "quinoa": _food(222, 8, 39, 4, 5, 0, 8),
    # Vegetables
    "salad": _food(20, 2, 4, 0, 2, 2, 9),
    "broccoli": _food(55, 4, 11, 1, 5, 2, 9),
    "spinach": _food(23, 3, 4, 0, 2, 0, 9),
    "carrot": _food(41, 1, 10, 0, 3, 5, 8),
    "vegetable": _food(50, 2, 10, 0, 3, 3, 8),
    # Fruits
    "apple": _food(95, 0, 25, 0, 4, 19, 7),
    "banana": _food(105, 1, 27, 0, 3, 14, 8),
    "bananas": _food(210, 2, 54, 1, 6, 28, 8),
    "berry": _food(85, 1, 21, 0, 8, 12, 9),
    "orange": _food(62, 1, 15, 0, 3, 12, 7),
    "fruit": _food(80, 1, 20, 0, 3, 15, 7),
    # Dairy
    "milk": _food(149, 8, 12, 8, 0, 12, 4),
    "cheese": _food(113, 7, 0, 9, 0, 0, 4),
    "yogurt": _food(100, 17, 6, 1, 0, 4, 7),
    # Fast food / processed
    "pizza": _food(285, 12, 36, 10, 2, 4, 3),
    "burger": _food(354, 20, 29, 17, 1, 5, 3),
    "fries": _food(365, 4, 48, 17, 4, 0, 2),
    "fried": _food(300, 15, 20, 18, 1, 2, 3),
    "sandwich": _food(350, 15, 35, 15, 3, 5, 5),
    # Drinks
    "coffee": _food(2, 0, 0, 0, 0, 0, 5),
    "smoothie": _food(200, 5, 40, 2, 4, 25, 6),
    "juice": _food(110, 1, 26, 0, 0, 22, 4),
    "soda": _food(140, 0, 39, 0, 0, 39, 1),
    # Healthy
    "avocado": _food(234, 3, 12, 21, 10, 1, 9),
    "nuts": _food(170, 5, 6, 15, 2, 1, 7),
    "soup": _food(150, 8, 20, 4, 3, 4, 7),
}

# Used when no food keyword matches
MEAL_TYPE_DEFAULTS: Dict[str, FoodProfile] = {
    "breakfast": _food(350, 12, 45, 12, 4, 15, 6),
    "lunch": _food(550, 25, 55, 20, 6, 10, 6),
    "dinner": _food(650, 30, 60, 25, 5, 8, 6),
    "snack": _food(200, 5, 25, 8, 2, 12, 5),
}
GENERIC_MEAL = _food(400, 15, 45, 15, 4, 10, 6)

# First match wins
_ANALYSIS_TEXTS: List[Tuple[Tuple[str, ...], str]] = [
    (("banana",), "Bananas are excellent for gut health! Rich in prebiotic fiber and potassium. "
                  "The resistant starch feeds beneficial bacteria."),
    (("apple",), "Apples contain pectin, a prebiotic fiber that supports gut bacteria. "
                 "The skin has most of the fiber - keep it on!"),
    (("avocado",), "Avocados are fantastic for gut health! High in fiber and healthy fats that support digestion."),
    (("berry", "berries"), "Excellent gut-friendly choice! Berries are high in fiber and antioxidants "
                           "that support gut health."),
    (("salad", "vegetable", "greens"), "Great choice! Vegetables are excellent for gut health. "
                                       "The fiber feeds beneficial bacteria."),
    (("fried", "pizza", "burger"), "This meal may be heavy on your gut. Fried foods can cause inflammation. "
                                   "Consider adding vegetables next time."),
    (("oats", "oatmeal"), "Oats are a gut superfood! Beta-glucan fiber feeds good bacteria and helps "
                          "maintain steady blood sugar."),
    (("yogurt", "curd"), "Yogurt contains live probiotics that support your gut microbiome. "
                         "Choose plain varieties for less sugar."),
    (("chicken", "fish", "salmon"), "Good protein choice. Lean proteins are easier to digest than red meat."),
    (("dairy", "cheese", "milk"), "Dairy can be hard to digest for some people. Monitor how you feel after this meal."),
    (("egg",), "Eggs are nutrient-dense and easy to digest. Great source of protein and healthy fats."),
    (("rice",), "Rice is easy to digest. Brown rice has more fiber and nutrients than white rice."),
]


@dataclass
class NutritionEstimate:
    calories: Optional[float]
    protein: Optional[float]
    carbs: Optional[float]
    fat: Optional[float]
    fiber: Optional[float]
    sugar: Optional[float]
    gut_score: float
    ai_analysis: str
    ai_tips: List[str] = field(default_factory=list)
    source: str = "local"  # ai | local | fallback
    food_name: Optional[str] = None
    matched_foods: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        tier = gut_score_tier(self.gut_score)
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "fiber": self.fiber,
            "sugar": self.sugar,
            "gut_score": self.gut_score,
            "gut_tier": {"label": tier.label, "emoji": tier.emoji, "color": tier.color},
            "ai_analysis": self.ai_analysis,
            "ai_tips": list(self.ai_tips),
            "source": self.source,
            "food_name": self.food_name,
            "matched_foods": list(self.matched_foods),
        }


def local_analysis(description: str) -> str:
    text = (description or "").lower()
    for keywords, analysis in _ANALYSIS_TEXTS:
        if any(k in text for k in keywords):
            return analysis
    return f'Meal logged: "{description}". Track how you feel in 2-3 hours to understand its gut impact.'


def local_tips(description: str) -> List[str]:
    text = (description or "").lower()
    tips = []
    if not any(k in text for k in ("vegetable", "salad", "greens")):
        tips.append("Add vegetables to increase fiber intake")
    if "fried" in text or "fries" in text:
        tips.append("Try baked or grilled options for better gut health")
    if "soda" in text or "juice" in text:
        tips.append("Replace sugary drinks with water or herbal tea")
    if not any(k in text for k in ("fiber", "oats", "berry")):
        tips.append("Consider adding high-fiber foods like oats or berries")

    if not tips:
        tips = [
            "Stay hydrated for optimal digestion",
            "Eat slowly to improve nutrient absorption",
        ]
    return tips[:MAX_TIPS]


def match_foods(description: str) -> List[str]:
    """
    Food keywords found in the description.

    Longer keys are tried first and a key inside an already matched one
    ("banana" in "bananas") is not counted again.
    """
    text = (description or "").lower()
    matched: List[str] = []
    for food in sorted(FOOD_DATABASE, key=lambda f: (-len(f), f)):
        if food in text and not any(food in longer for longer in matched):
            matched.append(food)
    # Report in table order
    order = list(FOOD_DATABASE)
    return sorted(matched, key=order.index)


def estimate_nutrition(description: str, meal_type: str = "snack") -> NutritionEstimate:
    """Sum the matched foods, or fall back to a typical meal of that type."""
    matched = match_foods(description)
    analysis = local_analysis(description)
    tips = local_tips(description)

    if not matched:
        profile = MEAL_TYPE_DEFAULTS.get(meal_type, GENERIC_MEAL)
        return NutritionEstimate(
            calories=profile.calories,
            protein=profile.protein,
            carbs=profile.carbs,
            fat=profile.fat,
            fiber=profile.fiber,
            sugar=profile.sugar,
            gut_score=profile.gut_score,
            ai_analysis=analysis,
            ai_tips=tips,
        )

    profiles = [FOOD_DATABASE[f] for f in matched]
    gut_score = sum(p.gut_score for p in profiles) / len(profiles)
    return NutritionEstimate(
        calories=float(round(sum(p.calories for p in profiles))),
        protein=float(round(sum(p.protein for p in profiles))),
        carbs=float(round(sum(p.carbs for p in profiles))),
        fat=float(round(sum(p.fat for p in profiles))),
        fiber=float(round(sum(p.fiber for p in profiles))),
        sugar=float(round(sum(p.sugar for p in profiles))),
        gut_score=round(gut_score, 1),
        ai_analysis=analysis,
        ai_tips=tips,
        matched_foods=matched,
    )
