# oneword/frequency.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

UNKNOWN_DIFFICULTY = 0.5


@dataclass(frozen=True)
class FrequencySignal:
    """
    Difficulty contribution of a word's frequency.

    value:    0..1, higher = rarer = harder
    measured: False when no frequency data existed and `value` is the default
    raw:      the source value it was derived from, if any
    """
    value: float
    measured: bool
    raw: Optional[float] = None


UNKNOWN_FREQUENCY = FrequencySignal(UNKNOWN_DIFFICULTY, measured=False)


def commonness(raw: float, max_expected_frequency: float) -> float:
    """Raw frequency scaled to 0..1 against the configured ceiling (higher = more common)."""
    if max_expected_frequency <= 0:
        raise ValueError("max_expected_frequency must be positive")
    return min(max(raw, 0.0) / max_expected_frequency, 1.0)


def curve(contribution: float, exponent: float = 1.0, floor: float = 0.0) -> float:
    """Optional convexity and floor applied to a 0..1 difficulty contribution."""
    value = max(0.0, min(1.0, contribution)) ** exponent
    return max(value, floor)


def normalize_frequency(
    raw: float,
    max_expected_frequency: float,
    exponent: float = 1.0,
    floor: float = 0.0,
) -> float:
    """
    1 - min(raw / max, 1), optionally raised to `exponent` and floored.
    Monotonically non-increasing in `raw`.
    """
    return curve(1.0 - commonness(raw, max_expected_frequency), exponent, floor)


def frequency_signal(raw: Optional[float], settings) -> FrequencySignal:
    if raw is None:
        return UNKNOWN_FREQUENCY
    value = normalize_frequency(
        raw,
        settings.max_expected_frequency,
        settings.frequency_exponent,
        settings.frequency_floor,
    )
    return FrequencySignal(value, measured=True, raw=raw)


def parse_frequency_tag(tags: Optional[Iterable]) -> Optional[float]:
    """Find 'f:<number>' in a Datamuse tag list."""
    for tag in tags or ():
        if isinstance(tag, str) and tag.startswith("f:"):
            try:
                return float(tag[2:])
            except ValueError:
                return None
    return None
