"""How lucky a realised discovery wait was compared to its expectation.

The wait is modelled as a geometric process with one roll every
``roll_interval`` ticks.  The result is informational and never feeds back
into later rolls.
"""

from __future__ import annotations

import math
from typing import Optional

from ..constants import LUCK_LABEL_BANDS, LUCK_LABEL_FALLBACK
from ..models.actions import LuckSummary
from ..models.player import LuckLedger


def normal_cdf(z: float) -> float:
    return 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))


def luck_label(percentile: float) -> str:
    for bound, label in LUCK_LABEL_BANDS:
        if percentile < bound:
            return label
    return LUCK_LABEL_FALLBACK


def luck_delta(actual_ticks: int, expected: float) -> int:
    """Ticks saved against the expectation, rounded half up."""

    if not math.isfinite(expected):
        return 0
    return math.floor(expected - actual_ticks + 0.5)


def z_score(actual_ticks: int, expected: float, interval: float) -> float:
    if not math.isfinite(expected) or expected <= 0:
        return 0.0
    p = min(1.0, interval / expected)
    std_dev = expected * math.sqrt(1.0 - p)
    if std_dev <= 0:
        return 0.0
    return (actual_ticks - expected) / std_dev


def luck_summary(
    actual_ticks: int,
    expected: float,
    interval: float,
    ledger: Optional[LuckLedger] = None,
) -> LuckSummary:
    """Score ``actual_ticks`` and, when given, record it in ``ledger``."""

    z = z_score(actual_ticks, expected, interval)
    percentile = normal_cdf(z) * 100.0
    delta = luck_delta(actual_ticks, expected)
    if ledger is not None:
        ledger.record(delta)
    return LuckSummary(
        actual_ticks=actual_ticks,
        expected_ticks=expected,
        roll_interval=interval,
        z_score=z,
        percentile=percentile,
        label=luck_label(percentile),
        luck_delta=delta,
        total_luck_delta=ledger.total_luck_delta if ledger is not None else delta,
        current_streak=ledger.current_streak if ledger is not None else 0,
    )


__all__ = ["luck_delta", "luck_label", "luck_summary", "normal_cdf", "z_score"]
