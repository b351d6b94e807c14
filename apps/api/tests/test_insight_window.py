"""
Unit tests for the insight window normalisation

Records are read into local wall-clock time, scores are clamped and bad
nutrition values are dropped, without ever raising.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from services.insight_window import (
    build_window,
    check_in_timestamp,
    history_bounds,
    normalize_check_ins,
    normalize_meals,
    to_local,
    window_bounds,
)
from services.gut_reference import clamp_score, non_negative
from fixtures.gut_fixtures import TODAY, at, days_ago, make_check_in, make_meal, make_supplement


class TestValueCoercion:
    def test_scores_are_clamped(self):
        assert clamp_score(15) == 10
        assert clamp_score(0) == 1
        assert clamp_score(-3) == 1
        assert clamp_score(6.6) == 7

    def test_unreadable_scores_are_none(self):
        assert clamp_score(None) is None
        assert clamp_score("abc") is None
        assert clamp_score(True) is None

    def test_negative_nutrition_reads_as_absent(self):
        assert non_negative(-2) is None
        assert non_negative(float("nan")) is None
        assert non_negative(0) == 0.0
        assert non_negative("4.5") == 4.5


class TestLocalTime:
    def test_naive_values_are_already_local(self):
        value = datetime(2026, 3, 15, 21, 30)
        assert to_local(value, ZoneInfo("America/New_York")) == value

    def test_aware_values_convert_to_user_zone(self):
        value = datetime(2026, 3, 15, 1, 30, tzinfo=timezone.utc)
        local = to_local(value, ZoneInfo("America/New_York"))
        assert local == datetime(2026, 3, 14, 21, 30)
        assert local.tzinfo is None

    def test_aware_values_default_to_utc(self):
        value = datetime(2026, 3, 15, 1, 30, tzinfo=timezone.utc)
        assert to_local(value, None) == datetime(2026, 3, 15, 1, 30)

    def test_check_in_without_created_at_uses_midnight(self):
        check_in = make_check_in(days_ago(1))
        assert check_in_timestamp(check_in, None) == at(days_ago(1), 0)

    def test_check_in_created_at_wins(self):
        check_in = make_check_in(days_ago(1), created_at=at(days_ago(1), 9, 15))
        assert check_in_timestamp(check_in, None) == at(days_ago(1), 9, 15)


class TestNormalisation:
    def test_check_ins_sorted_chronologically(self):
        check_ins = [make_check_in(days_ago(0)), make_check_in(days_ago(2)), make_check_in(days_ago(1))]
        days = [c.day for c in normalize_check_ins(check_ins)]
        assert days == [days_ago(2), days_ago(1), days_ago(0)]

    def test_out_of_range_scores_clamped(self):
        [check_in] = normalize_check_ins([make_check_in(TODAY, gut=14, energy=0)])
        assert check_in.gut == 10
        assert check_in.energy == 1

    def test_duplicate_symptoms_collapse(self):
        [check_in] = normalize_check_ins([make_check_in(TODAY, symptoms=["gas", "gas", ""])])
        assert check_in.symptoms == frozenset({"gas"})

    def test_meal_without_timestamp_skipped(self):
        meals = [SimpleNamespace(logged_at=None, description="toast"), make_meal(at(TODAY, 8))]
        assert len(normalize_meals(meals)) == 1

    def test_meal_nutrition_cleaned(self):
        [meal] = normalize_meals([make_meal(at(TODAY, 8), description="Greek YOGURT", fiber=-1, gut_score=12)])
        assert meal.fiber is None
        assert meal.gut_score == 10.0
        assert meal.description == "greek yogurt"

    def test_build_window_keeps_supplements(self):
        window = build_window([], [], [make_supplement("Magnesium")])
        assert window.check_ins == []
        assert window.meals == []
        assert len(window.supplements) == 1


class TestWindowBounds:
    def test_bounds_cover_last_n_days(self):
        now = datetime(2026, 3, 15, 18, 0, tzinfo=timezone.utc)
        start, end, start_at = window_bounds(now, 14)
        assert end == datetime(2026, 3, 15).date()
        assert start == datetime(2026, 3, 2).date()
        assert start_at == datetime(2026, 3, 2, tzinfo=timezone.utc)
        assert (end - start).days + 1 == 14

    def test_single_day(self):
        now = datetime(2026, 3, 15, 18, 0, tzinfo=timezone.utc)
        start, end, _ = window_bounds(now, 1)
        assert start == end == datetime(2026, 3, 15).date()

    def test_bounds_use_local_date(self):
        now = datetime(2026, 3, 15, 2, 0, tzinfo=timezone.utc)
        tz = ZoneInfo("America/New_York")
        start, end, start_at = window_bounds(now, 7, tz)
        assert end == datetime(2026, 3, 14).date()
        assert start_at.tzinfo is tz


class TestHistoryBounds:
    NOW = datetime(2026, 3, 31, 18, 0, tzinfo=timezone.utc)

    def test_today_is_the_whole_local_day(self):
        start, end = history_bounds("today", self.NOW)
        assert start == datetime(2026, 3, 31, tzinfo=timezone.utc)
        assert end == datetime(2026, 3, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_week_is_open_ended(self):
        start, end = history_bounds("week", self.NOW)
        assert start == datetime(2026, 3, 24, tzinfo=timezone.utc)
        assert end is None

    def test_month_clamps_to_shorter_month(self):
        start, end = history_bounds("month", self.NOW)
        assert start == datetime(2026, 2, 28, tzinfo=timezone.utc)
        assert end is None

    def test_month_across_new_year(self):
        start, _ = history_bounds("month", datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc))
        assert start == datetime(2025, 12, 10, tzinfo=timezone.utc)

    def test_all_is_unbounded(self):
        assert history_bounds("all", self.NOW) == (None, None)

    def test_today_uses_local_date(self):
        tz = ZoneInfo("America/New_York")
        start, end = history_bounds("today", datetime(2026, 4, 1, 2, 0, tzinfo=timezone.utc), tz)
        assert start == datetime(2026, 3, 31, tzinfo=tz)
        assert end.date() == datetime(2026, 3, 31).date()
