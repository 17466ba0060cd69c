"""Tests for timeparse date input."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tallycal.timeparse import parse_day, parse_month, parse_year


def _today():
    return datetime.now().astimezone().date()


# ---- None / blank ----


def test_none_returns_today():
    assert parse_day(None) == _today().isoformat()


def test_blank_returns_today():
    assert parse_day("  ") == _today().isoformat()


# ---- ISO ----


def test_iso_date():
    assert parse_day("2026-02-25") == "2026-02-25"


def test_iso_datetime_keeps_date():
    assert parse_day("2026-02-25T07:34:00-05:00") == "2026-02-25"


def test_slash_date():
    assert parse_day("2026/02/25") == "2026-02-25"


# ---- Keywords / relative ----


def test_yesterday():
    assert parse_day("yesterday") == (_today() - timedelta(days=1)).isoformat()


def test_tomorrow_case_insensitive():
    assert parse_day("Tomorrow") == (_today() + timedelta(days=1)).isoformat()


def test_days_ago():
    assert parse_day("3 days ago") == (_today() - timedelta(days=3)).isoformat()


def test_weeks_ago():
    assert parse_day("2 weeks ago") == (_today() - timedelta(days=14)).isoformat()


# ---- Invalid ----


def test_invalid_raises():
    with pytest.raises(SystemExit):
        parse_day("not a date at all")


def test_impossible_date_raises():
    with pytest.raises(SystemExit):
        parse_day("2023-02-29")


# ---- months / years ----


def test_parse_month():
    assert parse_month("2026-02") == (2026, 2)
    assert parse_month("2026/2") == (2026, 2)


def test_parse_month_default():
    today = _today()
    assert parse_month(None) == (today.year, today.month)


@pytest.mark.parametrize("bad", ["2026-13", "2026-00", "2026/0", "２０２６-02", "Feb 2026"])
def test_parse_month_invalid(bad):
    with pytest.raises(SystemExit):
        parse_month(bad)


def test_parse_year():
    assert parse_year("2025") == 2025
    assert parse_year(None) == _today().year


def test_parse_year_invalid():
    with pytest.raises(SystemExit):
        parse_year("25")
