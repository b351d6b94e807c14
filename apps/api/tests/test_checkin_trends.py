"""
Unit tests for check-in trend aggregations

Averages, two-halves gut trend, 7-day momentum, symptom ranking and
best/worst day.
"""

import pytest

from services.checkin_trends import (
    DAILY_MOMENTUM_THRESHOLD,
    TWO_WEEK_TREND_THRESHOLD,
    TrendDirection,
    best_day,
    classify_trend,
    compute_averages,
    compute_momentum,
    daily_scores,
    gut_halves_delta,
    mean_or_none,
    top_symptoms,
    worst_day,
)
from services.insight_window import normalize_check_ins
from fixtures.gut_fixtures import TODAY, days_ago, gut_series, make_check_in


def window_of(check_ins):
    return normalize_check_ins(check_ins)


class TestAverages:
    def test_empty_is_none(self):
        averages = compute_averages([])
        assert averages.energy is None
        assert averages.gut is None
        assert averages.mood is None

    def test_mean_or_none(self):
        assert mean_or_none([]) is None
        assert mean_or_none([None, None]) is None
        assert mean_or_none([2, None, 4]) == 3.0

    def test_averages(self):
        check_ins = window_of([
            make_check_in(days_ago(1), gut=4, energy=6, mood=8),
            make_check_in(days_ago(0), gut=6, energy=7, mood=9),
        ])
        averages = compute_averages(check_ins)
        assert averages.gut == 5.0
        assert averages.energy == 6.5
        assert averages.mood == 8.5

    def test_averages_ignore_order(self):
        check_ins = [make_check_in(days_ago(i), gut=g) for i, g in enumerate([3, 9, 4, 7, 1])]
        forward = compute_averages(window_of(check_ins))
        backward = compute_averages(window_of(list(reversed(check_ins))))
        assert forward == backward


class TestTrend:
    def test_constants_are_distinct(self):
        assert TWO_WEEK_TREND_THRESHOLD == 0.5
        assert DAILY_MOMENTUM_THRESHOLD == 0.2

    def test_empty_is_stable(self):
        assert classify_trend([]) == TrendDirection.STABLE

    def test_single_check_in_is_stable(self):
        assert classify_trend(window_of([make_check_in(TODAY, gut=1)])) == TrendDirection.STABLE

    def test_drop_in_second_half_is_down(self):
        check_ins = window_of(gut_series([8, 8, 8, 8, 3, 3, 3]))
        # Split at floor(7/2): [8, 8, 8] vs [8, 3, 3, 3]
        assert gut_halves_delta(check_ins) == pytest.approx(-3.75)
        assert classify_trend(check_ins) == TrendDirection.DOWN

    def test_rise_is_up(self):
        assert classify_trend(window_of(gut_series([3, 3, 8, 8]))) == TrendDirection.UP

    def test_threshold_is_exclusive(self):
        check_ins = window_of(gut_series([5, 5, 5, 6]))
        assert classify_trend(check_ins, TWO_WEEK_TREND_THRESHOLD) == TrendDirection.STABLE
        assert classify_trend(check_ins, DAILY_MOMENTUM_THRESHOLD) == TrendDirection.UP

    def test_trend_sorts_input(self):
        check_ins = gut_series([8, 8, 8, 8, 3, 3, 3])
        assert classify_trend(window_of(list(reversed(check_ins)))) == TrendDirection.DOWN


class TestMomentum:
    def test_only_last_seven_days(self):
        check_ins = window_of([
            make_check_in(days_ago(10), gut=2),
            make_check_in(days_ago(9), gut=2),
            make_check_in(days_ago(3), gut=6),
            make_check_in(days_ago(2), gut=6),
            make_check_in(days_ago(1), gut=7),
            make_check_in(days_ago(0), gut=7),
        ])
        momentum = compute_momentum(check_ins, TODAY)
        assert momentum.sample_size == 4
        assert momentum.delta == pytest.approx(1.0)
        assert momentum.direction == TrendDirection.UP

    def test_no_data(self):
        momentum = compute_momentum([], TODAY)
        assert momentum.delta is None
        assert momentum.direction == TrendDirection.STABLE
        assert momentum.to_dict() == {"direction": "stable", "delta": None, "sample_size": 0}


class TestTopSymptoms:
    def test_ranked_by_count_then_id(self):
        check_ins = window_of([
            make_check_in(days_ago(2), symptoms=["gas", "fatigue"]),
            make_check_in(days_ago(1), symptoms=["bloating", "fatigue"]),
        ])
        ranked = top_symptoms(check_ins)
        assert [(s.symptom, s.count) for s in ranked] == [("fatigue", 2), ("bloating", 1), ("gas", 1)]
        assert ranked[1].label == "Bloating"

    def test_limit(self):
        check_ins = window_of([make_check_in(TODAY, symptoms=["gas", "nausea", "bloating"])])
        assert [s.symptom for s in top_symptoms(check_ins, limit=2)] == ["bloating", "gas"]

    def test_unknown_symptom_keeps_id_as_label(self):
        [symptom] = top_symptoms(window_of([make_check_in(TODAY, symptoms=["hiccups"])]))
        assert symptom.label == "hiccups"


class TestBestWorstDay:
    def test_empty(self):
        assert best_day([]) is None
        assert worst_day([]) is None

    def test_ties_go_to_earliest_day(self):
        check_ins = window_of([
            make_check_in(days_ago(3), gut=8),
            make_check_in(days_ago(2), gut=2),
            make_check_in(days_ago(1), gut=8),
            make_check_in(days_ago(0), gut=2),
        ])
        assert best_day(check_ins).day == days_ago(3)
        assert worst_day(check_ins).day == days_ago(2)

    def test_daily_scores_chronological(self):
        check_ins = window_of(gut_series([5, 6, 7]))
        series = daily_scores(check_ins)
        assert [d.gut for d in series] == [5, 6, 7]
        assert series[-1].to_dict()["date"] == TODAY.isoformat()
