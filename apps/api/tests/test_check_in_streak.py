"""
Tests for daily check-in streaks
"""

from datetime import date

from services.check_in_streak import STREAK_MILESTONES, next_streak

TODAY = date(2026, 3, 15)


class TestNextStreak:
    def test_first_check_in(self):
        update = next_streak(TODAY, None, None, None)
        assert update.streak_count == 1
        assert update.longest_streak == 1
        assert update.changed is True
        assert update.celebration is None

    def test_consecutive_day_extends(self):
        update = next_streak(TODAY, date(2026, 3, 14), 4, 10)
        assert update.streak_count == 5
        assert update.longest_streak == 10

    def test_gap_restarts(self):
        update = next_streak(TODAY, date(2026, 3, 12), 9, 9)
        assert update.streak_count == 1
        assert update.longest_streak == 9

    def test_same_day_is_unchanged(self):
        update = next_streak(TODAY, TODAY, 4, 6)
        assert update.changed is False
        assert update.streak_count == 4
        assert update.longest_streak == 6

    def test_new_longest(self):
        update = next_streak(TODAY, date(2026, 3, 14), 6, 6)
        assert update.streak_count == 7
        assert update.longest_streak == 7
        assert update.celebration == STREAK_MILESTONES[7]
        assert update.message == "You're on a 7 day streak!"

    def test_profile_updates(self):
        update = next_streak(TODAY, date(2026, 3, 14), 1, 1)
        assert update.profile_updates() == {
            "streak_count": 2,
            "longest_streak": 2,
            "last_check_in": "2026-03-15",
        }
