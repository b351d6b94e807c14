"""
Check-in Trends

Aggregations over a window of daily check-ins: per-metric averages, gut
trend (two-halves comparison), 7-day momentum, symptom frequency and the
best/worst day.

"No data" is always None. An average over nothing is never 0.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from statistics import mean
from typing import Any, Dict, Iterable, List, Optional, Sequence

from services.gut_reference import symptom_label
from services.insight_window import WindowCheckIn


# Trend thresholds (points on the 10-point gut scale). The two views were
# tuned independently and are kept separate.
TWO_WEEK_TREND_THRESHOLD = 0.5
DAILY_MOMENTUM_THRESHOLD = 0.2

MOMENTUM_WINDOW_DAYS = 7
MIN_TREND_CHECK_INS = 2
DEFAULT_TOP_SYMPTOM_LIMIT = 5


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class Averages:
    energy: Optional[float]
    gut: Optional[float]
    mood: Optional[float]

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "energy": _round(self.energy),
            "gut": _round(self.gut),
            "mood": _round(self.mood),
        }


@dataclass(frozen=True)
class Momentum:
    direction: TrendDirection
    delta: Optional[float]  # second-half mean minus first-half mean
    sample_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "delta": _round(self.delta),
            "sample_size": self.sample_size,
        }


@dataclass(frozen=True)
class SymptomCount:
    symptom: str
    label: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"symptom": self.symptom, "label": self.label, "count": self.count}


@dataclass(frozen=True)
class DayScore:
    day: date
    gut: Optional[int]
    energy: Optional[int]
    mood: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "weekday": self.day.strftime("%a"),
            "gut": self.gut,
            "energy": self.energy,
            "mood": self.mood,
        }


def _round(value: Optional[float], places: int = 2) -> Optional[float]:
    return None if value is None else round(value, places)


def mean_or_none(values: Iterable[Optional[float]]) -> Optional[float]:
    """Mean of the non-None values, or None when there are none."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return float(mean(present))


def compute_averages(check_ins: Sequence[WindowCheckIn]) -> Averages:
    return Averages(
        energy=mean_or_none(c.energy for c in check_ins),
        gut=mean_or_none(c.gut for c in check_ins),
        mood=mean_or_none(c.mood for c in check_ins),
    )


def gut_halves_delta(check_ins: Sequence[WindowCheckIn]) -> Optional[float]:
    """
    Mean gut of the later half minus mean gut of the earlier half.

    The chronological window is split at floor(n/2); with an odd count the
    middle check-in belongs to the later half.
    """
    scored = sorted((c for c in check_ins if c.gut is not None), key=lambda c: (c.day, c.at))
    if len(scored) < MIN_TREND_CHECK_INS:
        return None
    midpoint = len(scored) // 2
    first = mean_or_none(c.gut for c in scored[:midpoint])
    second = mean_or_none(c.gut for c in scored[midpoint:])
    return second - first


def classify_delta(delta: Optional[float], threshold: float) -> TrendDirection:
    if delta is None:
        return TrendDirection.STABLE
    if delta > threshold:
        return TrendDirection.UP
    if delta < -threshold:
        return TrendDirection.DOWN
    return TrendDirection.STABLE


def classify_trend(
    check_ins: Sequence[WindowCheckIn],
    threshold: float = TWO_WEEK_TREND_THRESHOLD,
) -> TrendDirection:
    """Gut trend over the whole window. Fewer than two check-ins is stable."""
    return classify_delta(gut_halves_delta(check_ins), threshold)


def recent_check_ins(
    check_ins: Sequence[WindowCheckIn],
    today: date,
    days: int = MOMENTUM_WINDOW_DAYS,
) -> List[WindowCheckIn]:
    """Check-ins dated within the last `days` calendar days, today included."""
    since = today - timedelta(days=days - 1)
    return [c for c in check_ins if since <= c.day <= today]


def compute_momentum(
    check_ins: Sequence[WindowCheckIn],
    today: date,
    threshold: float = DAILY_MOMENTUM_THRESHOLD,
) -> Momentum:
    week = recent_check_ins(check_ins, today)
    delta = gut_halves_delta(week)
    return Momentum(
        direction=classify_delta(delta, threshold),
        delta=delta,
        sample_size=len(week),
    )


def top_symptoms(
    check_ins: Sequence[WindowCheckIn],
    limit: int = DEFAULT_TOP_SYMPTOM_LIMIT,
) -> List[SymptomCount]:
    """
    Symptom frequency across check-ins, most frequent first.

    A symptom counts once per check-in. Ties sort by symptom id so the
    ranking does not depend on input order.
    """
    if limit <= 0:
        return []
    counts: Counter = Counter()
    for check_in in check_ins:
        counts.update(check_in.symptoms)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [SymptomCount(symptom=s, label=symptom_label(s), count=n) for s, n in ranked[:limit]]


def _day_score(check_in: WindowCheckIn) -> DayScore:
    return DayScore(day=check_in.day, gut=check_in.gut, energy=check_in.energy, mood=check_in.mood)


def best_day(check_ins: Sequence[WindowCheckIn]) -> Optional[DayScore]:
    """Highest gut score; the earliest such day wins a tie."""
    scored = [c for c in check_ins if c.gut is not None]
    if not scored:
        return None
    return _day_score(min(scored, key=lambda c: (-c.gut, c.day)))


def worst_day(check_ins: Sequence[WindowCheckIn]) -> Optional[DayScore]:
    """Lowest gut score; the earliest such day wins a tie."""
    scored = [c for c in check_ins if c.gut is not None]
    if not scored:
        return None
    return _day_score(min(scored, key=lambda c: (c.gut, c.day)))


def daily_scores(check_ins: Sequence[WindowCheckIn]) -> List[DayScore]:
    """Chronological per-day series for the trend chart."""
    return [_day_score(c) for c in sorted(check_ins, key=lambda c: (c.day, c.at))]
