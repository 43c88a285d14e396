# src/bini_calendar/calendar/swipe.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from numbers import Real

DEFAULT_VELOCITY_THRESHOLD = 500.0
DEFAULT_TRANSLATION_THRESHOLD = 100.0


class SwipeDirection(StrEnum):
    PREVIOUS = "previous"
    NEXT = "next"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class SwipeThresholds:
    velocity: float = DEFAULT_VELOCITY_THRESHOLD
    translation: float = DEFAULT_TRANSLATION_THRESHOLD


DEFAULT_THRESHOLDS = SwipeThresholds()


def _require_number(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    return float(value)


def decide(
    velocity: float,
    translation: float,
    thresholds: SwipeThresholds = DEFAULT_THRESHOLDS,
) -> SwipeDirection:
    """
    Turn the final horizontal velocity/translation of a swipe into a month step.

    Either signal past its threshold triggers navigation. Rightward (positive)
    means PREVIOUS, leftward (negative) means NEXT. When both cross their
    thresholds the velocity sign wins; otherwise the signal that crossed decides.
    """
    v = _require_number("velocity", velocity)
    t = _require_number("translation", translation)

    if abs(v) > thresholds.velocity:
        signal = v
    elif abs(t) > thresholds.translation:
        signal = t
    else:
        return SwipeDirection.NONE

    return SwipeDirection.PREVIOUS if signal > 0 else SwipeDirection.NEXT
