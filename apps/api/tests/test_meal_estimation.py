"""
Tests for the local keyword nutrition estimate
"""

from services.meal_estimation import (
    MEAL_TYPE_DEFAULTS,
    estimate_nutrition,
    local_tips,
    match_foods,
)


class TestMatchFoods:
    def test_plural_does_not_double_count(self):
        assert match_foods("Two bananas") == ["bananas"]

    def test_table_order(self):
        assert match_foods("salad with grilled chicken") == ["chicken", "salad"]

    def test_no_match(self):
        assert match_foods("mystery stew") == []


class TestEstimateNutrition:
    def test_sums_matched_foods(self):
        estimate = estimate_nutrition("Grilled chicken salad", "lunch")
        assert estimate.calories == 185
        assert estimate.protein == 33
        assert estimate.fiber == 2
        assert estimate.gut_score == 8.0
        assert estimate.source == "local"
        assert estimate.ai_analysis.startswith("Great choice!")

    def test_gut_score_is_mean_of_matches(self):
        estimate = estimate_nutrition("fried chicken with soda", "dinner")
        assert estimate.matched_foods == ["chicken", "fried", "soda"]
        assert estimate.gut_score == 3.7

    def test_unmatched_uses_meal_type_defaults(self):
        estimate = estimate_nutrition("mystery stew", "breakfast")
        defaults = MEAL_TYPE_DEFAULTS["breakfast"]
        assert estimate.calories == defaults.calories
        assert estimate.gut_score == defaults.gut_score
        assert estimate.matched_foods == []
        assert estimate.ai_analysis.startswith('Meal logged: "mystery stew".')

    def test_to_dict_includes_tier(self):
        data = estimate_nutrition("salmon", "dinner").to_dict()
        assert data["gut_tier"]["label"] == "Gut-Healing"
        assert data["source"] == "local"


class TestLocalTips:
    def test_capped_at_three(self):
        assert local_tips("fried chicken with soda") == [
            "Add vegetables to increase fiber intake",
            "Try baked or grilled options for better gut health",
            "Replace sugary drinks with water or herbal tea",
        ]

    def test_balanced_meal_gets_general_tips(self):
        assert local_tips("salad with oats") == [
            "Stay hydrated for optimal digestion",
            "Eat slowly to improve nutrient absorption",
        ]
