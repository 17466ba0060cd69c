from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

# Fields of PeriodStats, in display order.
STAT_FIELDS = ("count", "total", "mean", "median", "min", "max")


@dataclass(frozen=True)
class PeriodStats:
    """Descriptive stats of one non-empty NumberSeries. "No data" is None, never a zeroed record."""

    count: int
    total: float
    mean: float
    median: float
    min: float
    max: float

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PeriodExtremes:
    # lowest_count is intentionally absent: only the busiest period is highlighted.
    highest_total: float | None = None
    lowest_total: float | None = None
    highest_count: int | None = None
    highest_mean: float | None = None
    lowest_mean: float | None = None
    highest_median: float | None = None
    lowest_median: float | None = None
    highest_max: float | None = None
    lowest_max: float | None = None
    highest_min: float | None = None
    lowest_min: float | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RecordFlags:
    is_highest_total: bool = False
    is_lowest_total: bool = False
    is_highest_count: bool = False
    is_highest_mean: bool = False
    is_lowest_mean: bool = False
    is_highest_median: bool = False
    is_lowest_median: bool = False
    is_highest_max: bool = False
    is_lowest_max: bool = False
    is_highest_min: bool = False
    is_lowest_min: bool = False

    def active(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]
