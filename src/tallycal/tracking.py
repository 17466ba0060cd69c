from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

# Index of the synthetic point that carries the prior period's last value.
PRIOR_POINT_INDEX = -1


class TrackingMode(str, Enum):
    SERIES = "series"  # running total
    TREND = "trend"  # raw values, deltas against the previous value
    NONE = "none"  # pass-through


@dataclass(frozen=True)
class ChartPoint:
    index: int
    y: float
    value: float
    delta: float
    valence_value: float

    @property
    def is_prior(self) -> bool:
        return self.index == PRIOR_POINT_INDEX


def last_value(numbers: Sequence[float] | None) -> float | None:
    if not numbers:
        return None
    return numbers[-1]


def to_chart_points(
    numbers: Sequence[float],
    prior_period_last_value: float | None = None,
    mode: TrackingMode = TrackingMode.NONE,
    include_prior_point: bool = False,
) -> list[ChartPoint]:
    """
    Turn one period's entries into chart points.
      - series: y is the running total, delta the entry itself
      - trend:  y is the entry, delta is entry minus the previous value; the
                first entry is compared with prior_period_last_value (or 0)
      - none:   y is the entry, delta 0
    With include_prior_point, trend mode prepends a synthetic point at
    PRIOR_POINT_INDEX holding prior_period_last_value so the line connects
    across the period boundary. Use interactive_points() to drop it again.
    """
    mode = TrackingMode(mode)
    if not numbers:
        return []

    points: list[ChartPoint] = []

    if mode is TrackingMode.SERIES:
        running = 0
        for i, n in enumerate(numbers):
            running += n
            points.append(ChartPoint(index=i, y=running, value=n, delta=n, valence_value=n))
        return points

    if mode is TrackingMode.TREND:
        if include_prior_point and prior_period_last_value is not None:
            p = prior_period_last_value
            points.append(ChartPoint(index=PRIOR_POINT_INDEX, y=p, value=p, delta=0, valence_value=0))
        prev = prior_period_last_value if prior_period_last_value is not None else 0
        for i, n in enumerate(numbers):
            delta = n - prev
            points.append(ChartPoint(index=i, y=n, value=n, delta=delta, valence_value=delta))
            prev = n
        return points

    for i, n in enumerate(numbers):
        points.append(ChartPoint(index=i, y=n, value=n, delta=0, valence_value=n))
    return points


def interactive_points(points: Iterable[ChartPoint]) -> list[ChartPoint]:
    return [p for p in points if not p.is_prior]


def chart_numbers(
    numbers: Sequence[float],
    prior_numbers: Sequence[float] | None,
    mode: TrackingMode,
) -> list[float]:
    """Line-continuity view: in trend mode, lead with the prior period's last entry."""
    if TrackingMode(mode) is TrackingMode.TREND:
        prior = last_value(prior_numbers)
        if prior is not None:
            return [prior, *numbers]
    return list(numbers)


# -------------------------
# Primary metric per mode
# -------------------------

def primary_metric(mode: TrackingMode) -> str:
    # trend datasets are read by their closing value, the rest by their total
    return "last" if TrackingMode(mode) is TrackingMode.TREND else "total"


def primary_value(numbers: Sequence[float], mode: TrackingMode) -> float | None:
    if not numbers:
        return None
    if primary_metric(mode) == "last":
        return numbers[-1]
    total = 0
    for n in numbers:
        total += n
    return total


def period_valence_value(
    numbers: Sequence[float],
    prior_numbers: Sequence[float] | None,
    mode: TrackingMode,
) -> float:
    """
    The number to classify good/bad for a whole period.
    trend compares closing values with the prior period (0 when there is none);
    series and none use the period's own primary value.
    """
    current = primary_value(numbers, mode)
    if current is None:
        return 0
    if TrackingMode(mode) is TrackingMode.TREND:
        prior = primary_value(prior_numbers or (), mode)
        if prior is None:
            return 0
        return current - prior
    return current
