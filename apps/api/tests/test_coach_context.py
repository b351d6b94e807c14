"""
Tests for the coach context block and prompts
"""

from schemas import Profile, UserContext
from services.coach_context import COACH_GUIDELINES, build_coach_context, build_conversation_prompt
from fixtures.gut_fixtures import NOW, TODAY, at, days_ago, make_check_in, make_meal, make_supplement


def _context():
    profile = Profile(id="user-1", name="Sam Rivera", health_conditions=["IBS"], food_sensitivities=["lactose"])
    check_ins = [
        make_check_in(days_ago(1), gut=5, energy=6, mood=7, symptoms=["gas"]),
        make_check_in(TODAY, gut=6, energy=5, mood=8, symptoms=["gas", "bloating"]),
    ]
    meals = [make_meal(at(TODAY, 8), "Oats", "breakfast", gut_score=8.0)]
    supplements = [make_supplement("Magnesium"), make_supplement("Iron", active=False)]
    return build_coach_context(check_ins, meals, supplements, NOW, profile=profile)


class TestBuildCoachContext:
    def test_lines(self):
        assert _context().lines == [
            "User's name: Sam Rivera",
            "Health conditions: IBS",
            "Food sensitivities: lactose",
            "Most recent check-in: Gut 6/10, Energy 5/10, Mood 8/10",
            "Current symptoms: Bloating, Gas",
            "7-day averages: Gut 5.5/10, Energy 5.5/10, Mood 7.5/10",
            "Recent meals: breakfast: Oats (gut score: 8)",
            "Current supplements: Magnesium",
            "Common symptoms this week: Gas (2x), Bloating (1x)",
            "Gut trend: up",
        ]

    def test_greeting_uses_first_name(self):
        assert _context().greeting.startswith("Hey Sam!")

    def test_greeting_without_profile(self):
        user = UserContext(user_id="user-1", display_name="Alex Kim")
        assert build_coach_context([], [], [], NOW, user=user).greeting.startswith("Hey Alex!")
        assert build_coach_context([], [], [], NOW).greeting.startswith("Hey there!")

    def test_empty_data_has_no_lines(self):
        assert build_coach_context([], [], [], NOW).lines == []

    def test_recent_meals_newest_first_and_capped(self):
        meals = [make_meal(at(days_ago(i), 12), f"meal {i}") for i in range(7)]
        [line] = build_coach_context([], meals, [], NOW).lines
        assert line.startswith("Recent meals: lunch: meal 0 (gut score: N/A); lunch: meal 1")
        assert "meal 5" not in line

    def test_system_prompt(self):
        prompt = _context().system_prompt()
        assert "GutSync AI" in prompt
        assert "USER'S HEALTH DATA:\nUser's name: Sam Rivera" in prompt
        assert f"- {COACH_GUIDELINES[0]}" in prompt


class TestConversationPrompt:
    def test_no_history(self):
        assert build_conversation_prompt([], "Why am I bloated?") == "Why am I bloated?"

    def test_keeps_last_six_messages(self):
        history = [
            {"role": "user" if i % 2 == 0 else "assistant", "content": f"message {i}"}
            for i in range(8)
        ]
        prompt = build_conversation_prompt(history, "And now?")
        assert prompt.startswith("Previous conversation:\nUser: message 2\n\nAssistant: message 3")
        assert "message 1" not in prompt
        assert prompt.endswith("Assistant: message 7\n\nUser's new question: And now?")
