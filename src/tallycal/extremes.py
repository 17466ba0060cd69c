from __future__ import annotations

from collections.abc import Iterable

from .models import PeriodExtremes, PeriodStats, RecordFlags


def compute_extremes(stats: Iterable[PeriodStats | None]) -> PeriodExtremes:
    """
    Per-field highs/lows across sibling periods (e.g. the months of a year).
    Periods without data are skipped, not counted as zero. Each field is
    independent: the month with the highest total need not have the highest mean.
    """
    present = [s for s in stats if s is not None]
    if not present:
        return PeriodExtremes()

    totals = [s.total for s in present]
    means = [s.mean for s in present]
    medians = [s.median for s in present]
    maxes = [s.max for s in present]
    mins = [s.min for s in present]

    return PeriodExtremes(
        highest_total=max(totals),
        lowest_total=min(totals),
        highest_count=max(s.count for s in present),
        highest_mean=max(means),
        lowest_mean=min(means),
        highest_median=max(medians),
        lowest_median=min(medians),
        highest_max=max(maxes),
        lowest_max=min(maxes),
        highest_min=max(mins),
        lowest_min=min(mins),
    )


def record_flags(stats: PeriodStats | None, extremes: PeriodExtremes) -> RecordFlags:
    if stats is None or extremes.is_empty:
        return RecordFlags()
    return RecordFlags(
        is_highest_total=stats.total == extremes.highest_total,
        is_lowest_total=stats.total == extremes.lowest_total,
        is_highest_count=stats.count == extremes.highest_count,
        is_highest_mean=stats.mean == extremes.highest_mean,
        is_lowest_mean=stats.mean == extremes.lowest_mean,
        is_highest_median=stats.median == extremes.highest_median,
        is_lowest_median=stats.median == extremes.lowest_median,
        is_highest_max=stats.max == extremes.highest_max,
        is_lowest_max=stats.max == extremes.lowest_max,
        is_highest_min=stats.min == extremes.highest_min,
        is_lowest_min=stats.min == extremes.lowest_min,
    )
