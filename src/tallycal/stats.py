"""
Per-period descriptive statistics and calendar roll-ups.

Precondition for everything in this module: the numbers are finite. NaN or
infinities give undefined results; filter them at the entry-store boundary
(storage.day_series) before they get here.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TypeVar

from .datekeys import month_days, parse_day_key
from .extremes import compute_extremes
from .models import STAT_FIELDS, PeriodExtremes, PeriodStats

K = TypeVar("K")


def compute_stats(numbers: Sequence[float]) -> PeriodStats | None:
    if not numbers:
        return None

    count = len(numbers)

    # Plain left-to-right accumulation: builtin sum() may compensate for
    # float error, which changes results versus input-order addition.
    total = 0
    for n in numbers:
        total += n

    mean = total / count

    ordered = sorted(numbers)
    mid = count // 2
    if count % 2 == 0:
        median = (ordered[mid - 1] + ordered[mid]) / 2
    else:
        median = ordered[mid]

    return PeriodStats(
        count=count,
        total=total,
        mean=mean,
        median=median,
        min=ordered[0],
        max=ordered[-1],
    )


def _days_in_year(data: Mapping[str, Sequence[float]], year: int) -> list[tuple[str, int, int]]:
    # (key, month, day) for every populated day of `year`, chronological
    out: list[tuple[str, int, int]] = []
    for key, nums in data.items():
        parts = parse_day_key(key)
        if parts.year != year or not nums:
            continue
        out.append((key, parts.month, parts.day))
    out.sort(key=lambda x: (x[1], x[2]))
    return out


def roll_up_months(year_data: Mapping[str, Sequence[float]], year: int) -> dict[int, PeriodStats | None]:
    """
    Stats for each month 1..12 of `year`.
    A month's series is its days' series concatenated in day order, then
    entry order. Months without entries map to None.
    """
    by_month: dict[int, list[float]] = {m: [] for m in range(1, 13)}
    for key, month, _day in _days_in_year(year_data, year):
        by_month[month].extend(year_data[key])
    return {m: compute_stats(nums) for m, nums in by_month.items()}


def roll_up_year(month_stats: Mapping[int, PeriodStats | None]) -> PeriodExtremes:
    return compute_extremes(month_stats[m] for m in sorted(month_stats))


def roll_up_days(data: Mapping[str, Sequence[float]], year: int, month: int) -> dict[int, PeriodStats | None]:
    """Stats for every calendar day of the month (1..28/29/30/31)."""
    out: dict[int, PeriodStats | None] = {}
    for i, key in enumerate(month_days(year, month), start=1):
        out[i] = compute_stats(data.get(key, ()))
    return out


def roll_up_years(data: Mapping[str, Sequence[float]]) -> dict[int, PeriodStats]:
    """Stats for every year that has at least one entry, ascending."""
    by_year: dict[int, list[float]] = {}
    for key in sorted(data):
        nums = data[key]
        if not nums:
            continue
        by_year.setdefault(parse_day_key(key).year, []).extend(nums)
    out: dict[int, PeriodStats] = {}
    for year in sorted(by_year):
        stats = compute_stats(by_year[year])
        if stats is not None:
            out[year] = stats
    return out


def compute_daily_stats(data: Mapping[str, Sequence[float]]) -> dict[str, PeriodStats]:
    out: dict[str, PeriodStats] = {}
    for key in sorted(data):
        stats = compute_stats(data[key])
        if stats is not None:
            out[key] = stats
    return out


def prior_numbers_map(
    ordered_keys: Iterable[K],
    data: Mapping[K, Sequence[float]],
    initial: Sequence[float] = (),
) -> dict[K, list[float]]:
    """
    For each key, the series of the closest earlier key that has entries.
    Empty periods are skipped over, so a trend carries across gaps.
    `initial` seeds the first key (e.g. the last populated day before the window).
    """
    out: dict[K, list[float]] = {}
    last_populated = list(initial)
    for key in ordered_keys:
        out[key] = last_populated
        nums = data.get(key)
        if nums:
            last_populated = list(nums)
    return out


def stats_delta(current: PeriodStats, prior: PeriodStats) -> PeriodStats:
    return PeriodStats(**{f: getattr(current, f) - getattr(prior, f) for f in STAT_FIELDS})


def stats_percent_change(current: PeriodStats, prior: PeriodStats) -> dict[str, float | None]:
    out: dict[str, float | None] = {}
    for f in STAT_FIELDS:
        base = getattr(prior, f)
        if base == 0:
            out[f] = None
            continue
        out[f] = (getattr(current, f) - base) / abs(base) * 100
    return out
