"""Tests for pure-logic helpers used by the CLI."""

from __future__ import annotations

from tallycal._util import _fmt_num, _sparkline
from tallycal.cli import _last_populated_before, _last_populated_month_before, _record_tags
from tallycal.extremes import compute_extremes, record_flags
from tallycal.models import RecordFlags
from tallycal.stats import compute_stats
from tallycal.valence import Valence

# ---- _fmt_num ----


def test_fmt_num_none():
    assert _fmt_num(None) == "—"


def test_fmt_num_integral_float():
    assert _fmt_num(5.0) == "5"


def test_fmt_num_thousands():
    assert _fmt_num(12345) == "12,345"


def test_fmt_num_trims_trailing_zeros():
    assert _fmt_num(2.50) == "2.5"


def test_fmt_num_delta_sign():
    assert _fmt_num(3, delta=True) == "+3"
    assert _fmt_num(-3, delta=True) == "-3"
    assert _fmt_num(0, delta=True) == "0"


# ---- _sparkline ----


def test_sparkline_empty():
    assert _sparkline([]) == ""


def test_sparkline_all_missing():
    assert _sparkline([None, None]) == ""


def test_sparkline_single():
    assert len(_sparkline([5.0])) == 1


def test_sparkline_length_matches_input():
    assert len(_sparkline([1.0, None, 10.0])) == 3


def test_sparkline_gap_for_missing():
    assert _sparkline([1.0, None, 10.0])[1] == " "


def test_sparkline_scales_to_data():
    result = _sparkline([3.0, 7.0])
    assert result[0] == "▁"
    assert result[1] == "█"


def test_sparkline_custom_range():
    result = _sparkline([0.0, 100.0], vmin=0.0, vmax=100.0)
    assert result == "▁█"


# ---- records ----


def test_record_tags_empty():
    assert _record_tags(RecordFlags(), Valence.POSITIVE) == ""


def test_record_tags_follow_valence():
    low, high = compute_stats([1]), compute_stats([9])
    ext = compute_extremes([low, high])
    assert "★highest total" in _record_tags(record_flags(high, ext), Valence.POSITIVE)
    assert "⚠highest total" in _record_tags(record_flags(high, ext), Valence.NEGATIVE)
    assert "★lowest total" in _record_tags(record_flags(low, ext), Valence.NEGATIVE)


def test_record_tags_busiest_has_no_mark():
    a, b = compute_stats([1, 1]), compute_stats([5])
    tags = _record_tags(record_flags(a, compute_extremes([a, b])), Valence.POSITIVE)
    assert "busiest" in tags
    assert "★busiest" not in tags


# ---- prior lookups ----


ENTRIES = {"2024-01-30": [1, 2], "2024-01-31": [3], "2024-02-10": [4]}


def test_last_populated_before():
    assert _last_populated_before(ENTRIES, "2024-02-10") == [3]
    assert _last_populated_before(ENTRIES, "2024-01-30") == []


def test_last_populated_month_before():
    assert _last_populated_month_before(ENTRIES, "2024-02-01") == [1, 2, 3]
    assert _last_populated_month_before(ENTRIES, "2024-01-01") == []
