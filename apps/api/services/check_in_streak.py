"""
Check-in Streak Service

Daily check-in streaks. A streak extends when the previous check-in was
yesterday and restarts at 1 after any gap. Re-saving today's check-in
leaves the streak alone.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


# Streak milestones with celebrations
STREAK_MILESTONES = {
    3: "🔥 Three days in a row! The habit is forming.",
    7: "⚡ One full week of check-ins!",
    14: "🌱 Two weeks! Your patterns are getting clearer.",
    30: "🏆 A whole month of check-ins. Amazing consistency.",
    100: "👑 100 days! You know your gut better than ever.",
}


@dataclass
class StreakUpdate:
    """Profile fields to write after a check-in."""
    streak_count: int
    longest_streak: int
    last_check_in: date
    changed: bool  # False when today was already counted
    message: str
    celebration: Optional[str] = None

    def profile_updates(self) -> Dict[str, Any]:
        return {
            "streak_count": self.streak_count,
            "longest_streak": self.longest_streak,
            "last_check_in": self.last_check_in.isoformat(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "streak_count": self.streak_count,
            "longest_streak": self.longest_streak,
            "last_check_in": self.last_check_in.isoformat(),
            "changed": self.changed,
            "message": self.message,
            "celebration": self.celebration,
        }


def streak_message(streak: int) -> str:
    if streak <= 1:
        return "Check-in saved. Come back tomorrow to start a streak!"
    return f"You're on a {streak} day streak!"


def next_streak(
    today: date,
    last_check_in: Optional[date],
    streak_count: Optional[int],
    longest_streak: Optional[int],
) -> StreakUpdate:
    """
    Streak after checking in on `today`.

    Args:
        today: The user's local date of the new check-in.
        last_check_in: Date of the previous check-in, if any.
        streak_count: Current streak from the profile (None reads as 0).
        longest_streak: Longest streak from the profile (None reads as 0).
    """
    current = streak_count or 0
    longest = longest_streak or 0

    if last_check_in == today:
        return StreakUpdate(
            streak_count=max(current, 1),
            longest_streak=max(longest, current, 1),
            last_check_in=today,
            changed=False,
            message=streak_message(max(current, 1)),
        )

    if last_check_in == today - timedelta(days=1):
        streak = current + 1
    else:
        streak = 1

    logger.debug(f"Streak {current} -> {streak} (last check-in {last_check_in})")
    return StreakUpdate(
        streak_count=streak,
        longest_streak=max(streak, longest),
        last_check_in=today,
        changed=True,
        message=streak_message(streak),
        celebration=STREAK_MILESTONES.get(streak),
    )
