from __future__ import annotations

import calendar
import re
from datetime import date
from enum import Enum
from typing import NamedTuple

_DAY_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_MONTH_RE = re.compile(r"([0-9]{4})-([0-9]{2})")
_YEAR_RE = re.compile(r"[0-9]{4}")


class DateKeyError(ValueError):
    pass


class MalformedKey(DateKeyError):
    pass


class UnsupportedConversion(DateKeyError):
    pass


class Granularity(str, Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


# finer -> coarser
_RANK = {Granularity.DAY: 0, Granularity.MONTH: 1, Granularity.YEAR: 2}
_KEY_LENGTH = {Granularity.DAY: 10, Granularity.MONTH: 7, Granularity.YEAR: 4}


class DayParts(NamedTuple):
    year: int
    month: int
    day: int


# -------------------------
# Range checks
# -------------------------

def _check_year(year: int) -> None:
    if not (0 <= year <= 9999):
        raise MalformedKey(f"year out of range: {year!r}")


def _check_month(month: int) -> None:
    if not (1 <= month <= 12):
        raise MalformedKey(f"month out of range: {month!r}")


def _check_day(day: int) -> None:
    if not (1 <= day <= 31):
        raise MalformedKey(f"day out of range: {day!r}")


# -------------------------
# Construction
# -------------------------

def to_day_key(year: int, month: int, day: int) -> str:
    """
    Build a canonical YYYY-MM-DD key.
    Only range bounds are checked; callers derive days from real calendar
    iteration (see month_days) so Feb 30 never gets here.
    """
    _check_year(year)
    _check_month(month)
    _check_day(day)
    return f"{year:04d}-{month:02d}-{day:02d}"


def to_month_key(year: int, month: int) -> str:
    _check_year(year)
    _check_month(month)
    return f"{year:04d}-{month:02d}"


def to_year_key(year: int) -> str:
    _check_year(year)
    return f"{year:04d}"


def date_to_day_key(d: date) -> str:
    return to_day_key(d.year, d.month, d.day)


# -------------------------
# Parsing
# -------------------------

def is_day_key(key: str) -> bool:
    return isinstance(key, str) and _DAY_RE.fullmatch(key) is not None


def is_month_key(key: str) -> bool:
    return isinstance(key, str) and _MONTH_RE.fullmatch(key) is not None


def is_year_key(key: str) -> bool:
    return isinstance(key, str) and _YEAR_RE.fullmatch(key) is not None


def parse_day_key(key: str) -> DayParts:
    m = _DAY_RE.fullmatch(key) if isinstance(key, str) else None
    if not m:
        raise MalformedKey(f"not a day key (YYYY-MM-DD): {key!r}")
    year, month, day = (int(g) for g in m.groups())
    _check_month(month)
    _check_day(day)
    return DayParts(year, month, day)


def parse_month_key(key: str) -> tuple[int, int]:
    m = _MONTH_RE.fullmatch(key) if isinstance(key, str) else None
    if not m:
        raise MalformedKey(f"not a month key (YYYY-MM): {key!r}")
    year, month = int(m.group(1)), int(m.group(2))
    _check_month(month)
    return year, month


def day_key_to_date(key: str) -> date:
    parts = parse_day_key(key)
    try:
        return date(parts.year, parts.month, parts.day)
    except ValueError as e:
        raise MalformedKey(f"not a calendar date: {key!r}") from e


def granularity_of(key: str) -> Granularity:
    if is_day_key(key):
        parse_day_key(key)
        return Granularity.DAY
    if is_month_key(key):
        parse_month_key(key)
        return Granularity.MONTH
    if is_year_key(key):
        return Granularity.YEAR
    raise MalformedKey(f"unrecognized date key: {key!r}")


# -------------------------
# Conversion
# -------------------------

def convert(key: str, target: Granularity | str) -> str:
    """
    Truncate a key to an equal or coarser granularity.
      - "2024-03-15" -> month -> "2024-03"
      - "2024-03-15" -> year  -> "2024"
      - "2024-03"    -> day   -> UnsupportedConversion
    """
    target = Granularity(target)
    source = granularity_of(key)
    if _RANK[target] < _RANK[source]:
        raise UnsupportedConversion(
            f"cannot convert {source.value} key {key!r} to finer granularity {target.value!r}"
        )
    return key[: _KEY_LENGTH[target]]


def month_days(year: int, month: int) -> list[str]:
    _check_year(year)
    _check_month(month)
    last = calendar.monthrange(year, month)[1]
    return [to_day_key(year, month, d) for d in range(1, last + 1)]


# -------------------------
# ISO weeks
# -------------------------

def day_key_to_week_key(key: str) -> str:
    """'2024-12-30' -> '2025-W01' (ISO year and week, Monday-based)."""
    iso = day_key_to_date(key).isocalendar()
    return f"{iso[0]:04d}-W{iso[1]:02d}"


def week_key_monday(week_key: str) -> date:
    m = re.fullmatch(r"([0-9]{4})-W([0-9]{2})", week_key) if isinstance(week_key, str) else None
    if not m:
        raise MalformedKey(f"not a week key (YYYY-Www): {week_key!r}")
    try:
        return date.fromisocalendar(int(m.group(1)), int(m.group(2)), 1)
    except ValueError as e:
        raise MalformedKey(f"no such ISO week: {week_key!r}") from e
