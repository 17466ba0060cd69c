"""Tests for valence classification."""

from __future__ import annotations

from tallycal.valence import (
    Classification,
    Valence,
    ValenceChoices,
    classify_direction,
    classify_number,
    good_sign,
    resolve_from_direction,
    resolve_from_number,
)

GBN = ValenceChoices(good="G", bad="B", neutral="N")

# ---- numbers ----


def test_positive_valence_positive_number_is_good():
    assert resolve_from_number(5, Valence.POSITIVE, GBN) == "G"


def test_negative_valence_positive_number_is_bad():
    assert resolve_from_number(5, Valence.NEGATIVE, GBN) == "B"


def test_zero_is_neutral():
    assert resolve_from_number(0, Valence.POSITIVE, GBN) == "N"
    assert resolve_from_number(0, Valence.NEGATIVE, GBN) == "N"


def test_negative_number():
    assert resolve_from_number(-0.5, Valence.POSITIVE, GBN) == "B"
    assert resolve_from_number(-0.5, Valence.NEGATIVE, GBN) == "G"


def test_accepts_plain_string_valence():
    assert classify_number(3, "negative") is Classification.BAD


# ---- directions ----


def test_direction_true_follows_positive_numbers():
    assert resolve_from_direction(True, Valence.POSITIVE, GBN) == "G"
    assert resolve_from_direction(True, Valence.NEGATIVE, GBN) == "B"


def test_direction_false_follows_negative_numbers():
    assert resolve_from_direction(False, Valence.POSITIVE, GBN) == "B"
    assert resolve_from_direction(False, Valence.NEGATIVE, GBN) == "G"


def test_direction_is_never_neutral():
    for valence in Valence:
        for is_high in (True, False):
            assert classify_direction(is_high, valence) is not Classification.NEUTRAL


# ---- payloads ----


def test_arbitrary_payloads():
    colors = ValenceChoices(good=("green", "lightgreen"), bad=("red", "pink"), neutral=("gray", "white"))
    assert resolve_from_number(-5, Valence.NEGATIVE, colors) == ("green", "lightgreen")


def test_pick():
    assert GBN.pick(Classification.NEUTRAL) == "N"


def test_good_sign():
    assert good_sign(Valence.POSITIVE) == 1
    assert good_sign(Valence.NEGATIVE) == -1
