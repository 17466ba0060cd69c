"""Good/bad/neutral classification of values under a dataset's valence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Valence(str, Enum):
    POSITIVE = "positive"  # higher is better
    NEGATIVE = "negative"  # lower is better


class Classification(str, Enum):
    GOOD = "good"
    BAD = "bad"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class ValenceChoices(Generic[T]):
    good: T
    bad: T
    neutral: T

    def pick(self, classification: Classification) -> T:
        if classification is Classification.GOOD:
            return self.good
        if classification is Classification.BAD:
            return self.bad
        return self.neutral


def classify_number(value: float, valence: Valence) -> Classification:
    """
    positive valence: >0 good, <0 bad, 0 neutral
    negative valence: >0 bad, <0 good, 0 neutral
    NaN is not special-cased; callers substitute 0 beforehand.
    """
    valence = Valence(valence)
    if value > 0:
        return Classification.GOOD if valence is Valence.POSITIVE else Classification.BAD
    if value < 0:
        return Classification.BAD if valence is Valence.POSITIVE else Classification.GOOD
    return Classification.NEUTRAL


def classify_direction(is_high: bool, valence: Valence) -> Classification:
    # True behaves like a positive number, False like a negative one.
    return classify_number(1 if is_high else -1, valence)


def resolve_from_number(value: float, valence: Valence, choices: ValenceChoices[T]) -> T:
    return choices.pick(classify_number(value, valence))


def resolve_from_direction(is_high: bool, valence: Valence, choices: ValenceChoices[T]) -> T:
    return choices.pick(classify_direction(is_high, valence))


def good_sign(valence: Valence) -> int:
    """+1 when increases are favorable, -1 when decreases are."""
    return 1 if Valence(valence) is Valence.POSITIVE else -1
