"""
All-time records: best/worst periods and longest streaks by day, ISO week and month.

Period values are the period total (sum of entries) and the period median.
Streaks walk periods in chronological order and only continue across
adjacent periods; a gap (a period with no entries) ends the streak.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import timedelta

from .datekeys import (
    Granularity,
    convert,
    day_key_to_date,
    day_key_to_week_key,
    parse_month_key,
    week_key_monday,
)
from .stats import compute_stats
from .valence import Valence, good_sign

PERIODS = ("day", "week", "month")


@dataclass(frozen=True)
class PeriodRecord:
    key: str
    value: float


@dataclass(frozen=True)
class Streak:
    length: int = 0
    start: str | None = None
    end: str | None = None


@dataclass(frozen=True)
class PeriodRecords:
    highest: PeriodRecord | None = None
    lowest: PeriodRecord | None = None
    highest_median: PeriodRecord | None = None
    lowest_median: PeriodRecord | None = None
    positive_streak: Streak = Streak()  # totals > 0
    negative_streak: Streak = Streak()  # totals < 0
    uptrend_streak: Streak = Streak()  # medians rising period over period
    downtrend_streak: Streak = Streak()  # medians falling period over period
    consecutive_streak: Streak = Streak()  # any entries at all


@dataclass(frozen=True)
class ValenceRecords:
    best: PeriodRecord | None
    worst: PeriodRecord | None
    best_median: PeriodRecord | None
    worst_median: PeriodRecord | None
    best_streak: Streak
    best_trend_streak: Streak


# -------------------------
# Adjacency
# -------------------------

def _adjacent_days(a: str, b: str) -> bool:
    return day_key_to_date(b) - day_key_to_date(a) == timedelta(days=1)


def _adjacent_weeks(a: str, b: str) -> bool:
    # via Mondays, so 53-week ISO years wrap correctly
    return week_key_monday(b) - week_key_monday(a) == timedelta(days=7)


def _adjacent_months(a: str, b: str) -> bool:
    ay, am = parse_month_key(a)
    by, bm = parse_month_key(b)
    return (by * 12 + bm) - (ay * 12 + am) == 1


_ADJACENT: dict[str, Callable[[str, str], bool]] = {
    "day": _adjacent_days,
    "week": _adjacent_weeks,
    "month": _adjacent_months,
}


# -------------------------
# Streaks
# -------------------------

def longest_streak(
    items: Sequence[tuple[str, float]],
    is_adjacent: Callable[[str, str], bool],
    predicate: Callable[[float, float | None], bool],
) -> Streak:
    """
    Longest run of adjacent periods whose value satisfies predicate(value, previous).
    `previous` is the adjacent earlier period's value, or None after a gap.
    Ties keep the earliest run.
    """
    best = Streak()
    cur_len = 0
    cur_start: str | None = None
    prev_key: str | None = None
    prev_value: float | None = None

    for key, value in items:
        adjacent = prev_key is not None and is_adjacent(prev_key, key)
        if not adjacent:
            cur_len = 0
        if predicate(value, prev_value if adjacent else None):
            if cur_len == 0:
                cur_start = key
            cur_len += 1
            if cur_len > best.length:
                best = Streak(length=cur_len, start=cur_start, end=key)
        else:
            cur_len = 0
        prev_key, prev_value = key, value

    return best


def _positive(v: float, _prev: float | None) -> bool:
    return v > 0


def _negative(v: float, _prev: float | None) -> bool:
    return v < 0


def _rising(v: float, prev: float | None) -> bool:
    return prev is not None and v > prev


def _falling(v: float, prev: float | None) -> bool:
    return prev is not None and v < prev


def _any(_v: float, _prev: float | None) -> bool:
    return True


# -------------------------
# Records
# -------------------------

def group_by_period(data: Mapping[str, Sequence[float]], period: str) -> dict[str, list[float]]:
    """DayKey series regrouped into day/week/month keys, chronological, empty periods dropped."""
    out: dict[str, list[float]] = {}
    for key in sorted(data):
        nums = data[key]
        if not nums:
            continue
        if period == "day":
            pkey = key
        elif period == "week":
            pkey = day_key_to_week_key(key)
        elif period == "month":
            pkey = convert(key, Granularity.MONTH)
        else:
            raise ValueError(f"unknown period {period!r}")
        out.setdefault(pkey, []).extend(nums)
    return out


def _period_records(groups: Mapping[str, Sequence[float]], period: str) -> PeriodRecords:
    totals: list[tuple[str, float]] = []
    medians: list[tuple[str, float]] = []
    for key, nums in groups.items():
        stats = compute_stats(nums)
        if stats is None:
            continue
        totals.append((key, stats.total))
        medians.append((key, stats.median))

    if not totals:
        return PeriodRecords()

    # max/min return the first of equal values, i.e. the earliest period
    hi = max(totals, key=lambda x: x[1])
    lo = min(totals, key=lambda x: x[1])
    hi_med = max(medians, key=lambda x: x[1])
    lo_med = min(medians, key=lambda x: x[1])
    adjacent = _ADJACENT[period]

    return PeriodRecords(
        highest=PeriodRecord(*hi),
        lowest=PeriodRecord(*lo),
        highest_median=PeriodRecord(*hi_med),
        lowest_median=PeriodRecord(*lo_med),
        positive_streak=longest_streak(totals, adjacent, _positive),
        negative_streak=longest_streak(totals, adjacent, _negative),
        uptrend_streak=longest_streak(medians, adjacent, _rising),
        downtrend_streak=longest_streak(medians, adjacent, _falling),
        consecutive_streak=longest_streak(totals, adjacent, _any),
    )


def calculate_records(data: Mapping[str, Sequence[float]]) -> dict[str, PeriodRecords]:
    return {period: _period_records(group_by_period(data, period), period) for period in PERIODS}


def records_for_valence(records: Mapping[str, PeriodRecords], valence: Valence) -> dict[str, ValenceRecords]:
    higher_is_better = good_sign(valence) > 0
    out: dict[str, ValenceRecords] = {}
    for period, r in records.items():
        if higher_is_better:
            out[period] = ValenceRecords(
                best=r.highest,
                worst=r.lowest,
                best_median=r.highest_median,
                worst_median=r.lowest_median,
                best_streak=r.positive_streak,
                best_trend_streak=r.uptrend_streak,
            )
        else:
            out[period] = ValenceRecords(
                best=r.lowest,
                worst=r.highest,
                best_median=r.lowest_median,
                worst_median=r.highest_median,
                best_streak=r.negative_streak,
                best_trend_streak=r.downtrend_streak,
            )
    return out
