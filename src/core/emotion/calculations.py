"""Emotion pipeline stage math

One function per stage, all pure. EmotionEngine fixes their order.
"""

from __future__ import annotations

from typing import Iterable

from src.core.rarity import Rarity
from src.core.emotion.models import EmotionTuning


def base_deltas(quality: float, tuning: EmotionTuning) -> tuple[float, float]:
    """Asymmetric power curves.

    Satisfaction exponent < 1 (easy to gain), frustration exponent > 1.
    """
    d_s = quality**tuning.satisfaction_exponent * tuning.s_max
    d_f = (1.0 - quality) ** tuning.frustration_exponent * tuning.f_max
    return d_s, d_f


def has_notable(rarities: Iterable[Rarity], notable: Rarity) -> bool:
    return any(r >= notable for r in rarities)


def apply_rare_boost(
    d_s: float, rarities: Iterable[Rarity], tuning: EmotionTuning
) -> float:
    if has_notable(rarities, tuning.notable_rarity):
        return d_s * tuning.rare_boost
    return d_s


def apply_quality_reduction(
    d_f: float, quality: float, tuning: EmotionTuning
) -> float:
    """Good pulls subtract frustration, bad pulls shrink it.

    Good branch: subtractive, proportional to how far above the threshold
    the pull is, floored at 0. Bad branch: multiplicative, up to
    bad_frustration_relief at quality 0. Neither branch adds frustration.
    """
    good = tuning.good_threshold
    bad = tuning.bad_threshold

    if quality > good:
        excess = (quality - good) / max(1e-9, 1.0 - good)
        reduction = excess * tuning.good_frustration_relief * tuning.f_max
        return max(0.0, d_f - reduction)

    if quality < bad and bad > 0:
        depth = (bad - quality) / bad
        return d_f * (1.0 - tuning.bad_frustration_relief * depth)

    return d_f


def in_neutral_band(quality: float, tuning: EmotionTuning) -> bool:
    return abs(quality - tuning.neutral_center) <= tuning.neutral_half_width


def apply_neutral_damping(
    d_s: float, d_f: float, quality: float, tuning: EmotionTuning
) -> tuple[float, float]:
    if in_neutral_band(quality, tuning):
        return d_s * tuning.neutral_damping, d_f * tuning.neutral_damping
    return d_s, d_f


def apply_cross_coupling(
    d_s: float, d_f: float, tuning: EmotionTuning
) -> tuple[float, float]:
    """Each meter's delta is pulled back by k times the other's (pre-coupling)."""
    k = tuning.coupling_k
    return d_s - d_f * k, d_f - d_s * k


def streak_value(window: Iterable[float], tuning: EmotionTuning) -> float:
    """mean(window) - baseline. Empty window -> 0 (no streak)."""
    values = list(window)
    if not values:
        return 0.0
    return sum(values) / len(values) - tuning.streak_baseline


def apply_streak(
    d_s: float, d_f: float, streak: float, tuning: EmotionTuning
) -> tuple[float, float]:
    """Hot: amplify gains, trim frustration. Cold: soften losses and frustration.

    Cold scaling is stronger than hot amplification so a bad run recovers.
    """
    if abs(streak) <= tuning.streak_threshold:
        return d_s, d_f

    if streak > 0:
        if d_s > 0:
            d_s *= tuning.hot_satisfaction_gain
        if d_f > 0:
            d_f *= tuning.hot_frustration_scale
    else:
        if d_s < 0:
            d_s *= tuning.cold_satisfaction_loss_scale
        if d_f > 0:
            d_f *= tuning.cold_frustration_scale
    return d_s, d_f


def decay_meters(
    satisfaction: float, frustration: float, tuning: EmotionTuning
) -> tuple[float, float]:
    return (
        satisfaction * tuning.satisfaction_decay,
        frustration * tuning.frustration_decay,
    )


def clamp_meter(value: float, tuning: EmotionTuning) -> float:
    return max(tuning.meter_min, min(tuning.meter_max, value))
