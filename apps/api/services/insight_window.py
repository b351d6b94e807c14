"""
Insight Window

Normalises a caller-supplied slice of records into the shape every insight
derivation reads: local wall-clock timestamps, clamped scores, non-negative
nutrition values, lower-cased free text.

Records are never mutated. Anything the derivations cannot use (a meal with
no timestamp, a check-in with no date) is dropped here rather than raising.
"""

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, FrozenSet, List, Optional, Sequence, Tuple
import logging

from services.gut_reference import clamp_score, meal_gut_score, non_negative

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowCheckIn:
    day: date
    at: datetime  # local, naive
    energy: Optional[int]
    gut: Optional[int]
    mood: Optional[int]
    symptoms: FrozenSet[str]


@dataclass(frozen=True)
class WindowMeal:
    at: datetime  # local, naive
    meal_type: str
    description: str  # lower-cased
    fiber: Optional[float]
    sugar: Optional[float]
    protein: Optional[float]
    gut_score: Optional[float]

    @property
    def day(self) -> date:
        return self.at.date()


@dataclass
class InsightWindow:
    check_ins: List[WindowCheckIn] = field(default_factory=list)  # chronological
    meals: List[WindowMeal] = field(default_factory=list)  # chronological
    supplements: List[Any] = field(default_factory=list)


def to_local(value: datetime, tz: Optional[tzinfo]) -> datetime:
    """
    Convert to the user's naive local wall clock.

    Aware values are converted into `tz` (UTC when not given); naive values
    are taken to be local already.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz or timezone.utc).replace(tzinfo=None)


def check_in_timestamp(check_in: Any, tz: Optional[tzinfo]) -> Optional[datetime]:
    """When the check-in was recorded; local midnight of its day when unknown."""
    created_at = getattr(check_in, "created_at", None)
    if isinstance(created_at, datetime):
        return to_local(created_at, tz)
    day = getattr(check_in, "check_in_date", None)
    if isinstance(day, datetime):
        return to_local(day, tz)
    if isinstance(day, date):
        return datetime.combine(day, time.min)
    return None


def normalize_check_ins(check_ins: Sequence[Any], tz: Optional[tzinfo] = None) -> List[WindowCheckIn]:
    normalized = []
    for check_in in check_ins:
        day = getattr(check_in, "check_in_date", None)
        if isinstance(day, datetime):
            day = to_local(day, tz).date()
        at = check_in_timestamp(check_in, tz)
        if not isinstance(day, date) or at is None:
            logger.debug("Skipping check-in without a date")
            continue
        normalized.append(WindowCheckIn(
            day=day,
            at=at,
            energy=clamp_score(getattr(check_in, "energy", None)),
            gut=clamp_score(getattr(check_in, "gut", None)),
            mood=clamp_score(getattr(check_in, "mood", None)),
            symptoms=frozenset(s for s in (getattr(check_in, "symptoms", None) or []) if s),
        ))
    normalized.sort(key=lambda c: (c.day, c.at))
    return normalized


def normalize_meals(meals: Sequence[Any], tz: Optional[tzinfo] = None) -> List[WindowMeal]:
    normalized = []
    for meal in meals:
        logged_at = getattr(meal, "logged_at", None)
        if not isinstance(logged_at, datetime):
            logger.debug("Skipping meal without a timestamp")
            continue
        normalized.append(WindowMeal(
            at=to_local(logged_at, tz),
            meal_type=(getattr(meal, "meal_type", None) or "").lower(),
            description=(getattr(meal, "description", None) or "").lower(),
            fiber=non_negative(getattr(meal, "fiber", None)),
            sugar=non_negative(getattr(meal, "sugar", None)),
            protein=non_negative(getattr(meal, "protein", None)),
            gut_score=meal_gut_score(getattr(meal, "gut_score", None)),
        ))
    normalized.sort(key=lambda m: (m.at, m.meal_type, m.description))
    return normalized


def build_window(
    check_ins: Sequence[Any],
    meals: Sequence[Any],
    supplements: Sequence[Any],
    tz: Optional[tzinfo] = None,
) -> InsightWindow:
    return InsightWindow(
        check_ins=normalize_check_ins(check_ins, tz),
        meals=normalize_meals(meals, tz),
        supplements=list(supplements or []),
    )


def window_bounds(now: datetime, days: int, tz: Optional[tzinfo] = None) -> Tuple[date, date, datetime]:
    """
    Local date range of `days` calendar days ending today (inclusive), plus
    the aware instant the range starts at (for timestamp queries).
    """
    today = to_local(now, tz).date()
    start = today - timedelta(days=days - 1)
    start_at = datetime.combine(start, time.min).replace(tzinfo=tz or timezone.utc)
    return start, today, start_at


def _month_earlier(day: date) -> date:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return day.replace(year=year, month=month, day=min(day.day, monthrange(year, month)[1]))


def history_bounds(
    period: str, now: datetime, tz: Optional[tzinfo] = None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Aware (start, end) instants for a meal-history period.

    "today" is local midnight through the end of the local day; "week" and
    "month" start at local midnight seven days or one calendar month ago and
    are open-ended; "all" is unbounded.
    """
    zone = tz or timezone.utc
    today = to_local(now, tz).date()

    if period == "today":
        start = datetime.combine(today, time.min).replace(tzinfo=zone)
        return start, datetime.combine(today, time.max).replace(tzinfo=zone)
    if period == "week":
        return datetime.combine(today - timedelta(days=7), time.min).replace(tzinfo=zone), None
    if period == "month":
        return datetime.combine(_month_earlier(today), time.min).replace(tzinfo=zone), None
    return None, None
