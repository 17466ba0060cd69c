"""Tests for the period statistics engine."""

from __future__ import annotations

import random

import pytest

from tallycal.datekeys import MalformedKey
from tallycal.models import PeriodStats
from tallycal.stats import (
    compute_daily_stats,
    compute_stats,
    prior_numbers_map,
    roll_up_days,
    roll_up_months,
    roll_up_year,
    roll_up_years,
    stats_delta,
    stats_percent_change,
)

# ---- compute_stats ----


def test_empty_is_absent():
    assert compute_stats([]) is None


def test_single_value():
    assert compute_stats([5]) == PeriodStats(count=1, total=5, mean=5, median=5, min=5, max=5)


def test_even_count_median_averages_middle_pair():
    assert compute_stats([1, 2, 3, 4]) == PeriodStats(count=4, total=10, mean=2.5, median=2.5, min=1, max=4)


def test_odd_count_median_is_middle_of_sorted():
    stats = compute_stats([9, 1, 5])
    assert stats.median == 5
    assert stats.min == 1
    assert stats.max == 9


def test_zero_is_data_not_absence():
    stats = compute_stats([0])
    assert stats is not None
    assert stats.count == 1
    assert stats.total == 0


def test_negative_values():
    stats = compute_stats([-3, -1, -2])
    assert stats.total == -6
    assert stats.mean == -2
    assert stats.min == -3
    assert stats.max == -1


def test_input_is_not_mutated():
    numbers = [3, 1, 2]
    compute_stats(numbers)
    assert numbers == [3, 1, 2]


def test_total_accumulates_in_input_order():
    numbers = [0.1, 0.2, 0.3, 1e16, -1e16]
    expected = 0
    for n in numbers:
        expected += n
    assert compute_stats(numbers).total == expected


def test_bounds_hold_for_random_series():
    rng = random.Random(1234)
    for _ in range(200):
        xs = [rng.uniform(-1000, 1000) for _ in range(rng.randint(1, 25))]
        s = compute_stats(xs)
        assert s.min <= s.mean <= s.max
        assert s.min <= s.median <= s.max


def test_idempotent():
    xs = [0.1, 2.7, -3.3, 8.05, 1e-3]
    assert compute_stats(xs) == compute_stats(list(xs))


def test_accepts_tuples():
    assert compute_stats((2, 4)).mean == 3


# ---- roll_up_months ----


YEAR_DATA = {
    "2024-01-31": [1, 2],
    "2024-01-02": [10],
    "2024-03-15": [0],
    "2024-03-16": [],
    "2023-12-31": [100],
    "2025-01-01": [100],
}


def test_roll_up_months_has_all_twelve():
    months = roll_up_months(YEAR_DATA, 2024)
    assert list(months) == list(range(1, 13))


def test_roll_up_months_concatenates_days():
    jan = roll_up_months(YEAR_DATA, 2024)[1]
    assert jan.count == 3
    assert jan.total == 13
    assert jan.median == 2


def test_roll_up_months_zero_month_is_present():
    march = roll_up_months(YEAR_DATA, 2024)[3]
    assert march == PeriodStats(count=1, total=0, mean=0, median=0, min=0, max=0)


def test_roll_up_months_empty_months_are_absent():
    months = roll_up_months(YEAR_DATA, 2024)
    assert months[2] is None
    assert months[12] is None


def test_roll_up_months_ignores_other_years():
    months = roll_up_months(YEAR_DATA, 2024)
    assert all(s is None or s.max < 100 for s in months.values())


def test_roll_up_months_day_then_entry_order():
    # totals are order sensitive for floats; day order must win over dict order
    data = {"2024-05-03": [0.5], "2024-05-01": [1e16], "2024-05-02": [-1e16]}
    assert roll_up_months(data, 2024)[5].total == 0.5


def test_roll_up_months_malformed_key():
    with pytest.raises(MalformedKey):
        roll_up_months({"2024-1-5": [1]}, 2024)


def test_roll_up_months_empty_year():
    assert all(s is None for s in roll_up_months({}, 2024).values())


# ---- roll_up_year ----


def test_roll_up_year_extremes_skip_absent_months():
    ext = roll_up_year(roll_up_months(YEAR_DATA, 2024))
    assert ext.highest_total == 13
    assert ext.lowest_total == 0
    assert ext.highest_count == 3


def test_roll_up_year_without_data():
    assert roll_up_year(roll_up_months({}, 2024)).is_empty


# ---- other roll-ups ----


def test_roll_up_days_covers_calendar_month():
    days = roll_up_days({"2024-02-29": [4], "2024-03-01": [9]}, 2024, 2)
    assert len(days) == 29
    assert days[29].total == 4
    assert days[1] is None


def test_roll_up_years():
    years = roll_up_years(YEAR_DATA)
    assert list(years) == [2023, 2024, 2025]
    assert years[2024].count == 4


def test_compute_daily_stats_drops_empty_days():
    daily = compute_daily_stats(YEAR_DATA)
    assert "2024-03-16" not in daily
    assert list(daily)[0] == "2023-12-31"
    assert daily["2024-01-31"].mean == 1.5


# ---- prior_numbers_map ----


def test_prior_numbers_map_skips_empty_periods():
    keys = ["d1", "d2", "d3", "d4"]
    data = {"d1": [1, 2], "d2": [], "d4": [7]}
    priors = prior_numbers_map(keys, data)
    assert priors == {"d1": [], "d2": [1, 2], "d3": [1, 2], "d4": [1, 2]}


def test_prior_numbers_map_initial_seed():
    priors = prior_numbers_map(["a", "b"], {"a": [3]}, initial=[9])
    assert priors["a"] == [9]
    assert priors["b"] == [3]


# ---- deltas ----


def test_stats_delta():
    delta = stats_delta(compute_stats([4, 6]), compute_stats([1, 2, 3]))
    assert delta.count == -1
    assert delta.total == 4
    assert delta.mean == 3


def test_stats_percent_change():
    pct = stats_percent_change(compute_stats([3]), compute_stats([2]))
    assert pct["total"] == pytest.approx(50.0)
    assert pct["count"] == 0


def test_stats_percent_change_zero_baseline():
    pct = stats_percent_change(compute_stats([3]), compute_stats([0]))
    assert pct["total"] is None
    assert pct["count"] == 0


def test_stats_percent_change_negative_baseline():
    pct = stats_percent_change(compute_stats([-1]), compute_stats([-2]))
    assert pct["total"] == pytest.approx(50.0)
