from __future__ import annotations

import pytest

from factories import make_run
from routerbench.services import stats_service


def test_aggregate_is_arithmetic_mean_of_each_field():
    runs = [make_run(4000.0, requests=10), make_run(5000.0, requests=11), make_run(5802.0, requests=13)]

    agg = stats_service.aggregate(runs)

    assert agg is not None
    assert agg.iterations == 3
    assert agg.total_load_time_ms == pytest.approx((4000.0 + 5000.0 + 5802.0) / 3)
    # counts are averaged, not rounded
    assert agg.network_request_count == pytest.approx(34 / 3)
    assert agg.raw_results == runs


def test_aggregate_is_idempotent():
    runs = [make_run(1200.0), make_run(1500.0)]

    assert stats_service.aggregate(runs) == stats_service.aggregate(runs)


def test_aggregate_empty_list_returns_none():
    assert stats_service.aggregate([]) is None


def test_successful_drops_failed_trials():
    runs = [make_run(1000.0), None, make_run(3000.0)]

    agg = stats_service.aggregate(stats_service.successful(runs))

    assert agg.iterations == 2
    assert agg.total_load_time_ms == pytest.approx(2000.0)


def test_describe_statistics():
    stats = stats_service.describe([10.0, 20.0, 30.0, 40.0])

    assert stats.count == 4
    assert stats.min == 10.0
    assert stats.max == 40.0
    assert stats.mean == pytest.approx(25.0)
    assert stats.median == 30.0
    assert stats.std_dev == pytest.approx(11.1803, rel=1e-4)
    assert stats.coefficient_of_variation == pytest.approx(11.1803 / 25.0, rel=1e-4)


def test_describe_without_values():
    assert stats_service.describe([]) is None
    assert stats_service.describe([float("nan")]) is None


def test_load_time_winner_scenario():
    a = stats_service.aggregate([make_run(4900.0), make_run(4934.0), make_run(4968.0)])
    b = stats_service.aggregate([make_run(5600.0), make_run(5627.0), make_run(5654.0)])

    result = stats_service.compare({"A": a, "B": b}, {"A": None, "B": None})

    assert result.load_time_winner == "A"
    assert result.load_time_difference_ms == pytest.approx(693.0)
    assert result.load_time_ratio == pytest.approx(5627.0 / 4934.0)
    assert result.navigation_winner is None
    assert result.navigation_difference_ms is None


def test_null_target_never_wins():
    b = stats_service.aggregate([make_run(9000.0)])

    result = stats_service.compare({"A": None, "B": b}, {"A": 100.0, "B": None})

    assert result.load_time_winner is None
    assert result.load_time_difference_ms is None
    assert result.transfer_size_winner is None
    assert result.lcp_winner is None
    assert result.navigation_winner is None


def test_tie_goes_to_first_target_in_order():
    assert stats_service.pick_winner({"A": 100.0, "B": 100.0}) == ("A", 0.0)
    assert stats_service.pick_winner({"B": 100.0, "A": 100.0}) == ("B", 0.0)


def test_three_targets_difference_is_against_runner_up():
    winner, diff = stats_service.pick_winner({"A": 300.0, "B": 120.0, "C": 200.0})

    assert winner == "B"
    assert diff == pytest.approx(80.0)


def test_navigation_comparison():
    result = stats_service.compare({}, {"A": 180.0, "B": 120.0})

    assert result.navigation_winner == "B"
    assert result.navigation_difference_ms == pytest.approx(60.0)


@pytest.mark.parametrize(
    "metric, value, expected",
    [
        ("first_contentful_paint_ms", 1800.0, "good"),
        ("first_contentful_paint_ms", 1800.1, "needs-improvement"),
        ("largest_contentful_paint_ms", 4000.0, "needs-improvement"),
        ("largest_contentful_paint_ms", 4000.1, "poor"),
        ("cumulative_layout_shift", 0.05, "good"),
        ("cumulative_layout_shift", 0.3, "poor"),
        ("time_to_first_byte_ms", 900.0, "needs-improvement"),
        ("total_load_time_ms", 100.0, None),
        ("first_contentful_paint_ms", None, None),
    ],
)
def test_web_vitals_grade(metric, value, expected):
    assert stats_service.grade(metric, value) == expected


def test_aggregate_grades_the_averages():
    runs = [
        make_run(6000.0).model_copy(update={"cumulative_layout_shift": 0.2, "time_to_first_byte_ms": 300.0}),
        make_run(6000.0).model_copy(update={"cumulative_layout_shift": 0.4, "time_to_first_byte_ms": 500.0}),
    ]

    agg = stats_service.aggregate(runs)

    assert agg.cumulative_layout_shift == pytest.approx(0.3)
    assert agg.time_to_first_byte_ms == pytest.approx(400.0)
    assert agg.grades == {
        "first_contentful_paint_ms": "good",
        "largest_contentful_paint_ms": "needs-improvement",
        "cumulative_layout_shift": "poor",
        "time_to_first_byte_ms": "good",
    }


def test_improvement_percent():
    assert stats_service.improvement_percent(5627.0, 4934.0) == pytest.approx(693.0 / 5627.0 * 100)
    assert stats_service.improvement_percent(100.0, 150.0) == pytest.approx(-50.0)
    assert stats_service.improvement_percent(0.0, 10.0) is None
    assert stats_service.improvement_percent(None, 10.0) is None


def test_compare_reports_improvement_over_runner_up():
    a = stats_service.aggregate([make_run(4934.0)])
    b = stats_service.aggregate([make_run(5627.0)])

    result = stats_service.compare({"A": a, "B": b}, {})

    assert result.load_time_improvement_percent == pytest.approx(693.0 / 5627.0 * 100)
    assert result.lcp_winner == "A"
    assert result.lcp_improvement_percent == pytest.approx(693.0 / 5627.0 * 100)
