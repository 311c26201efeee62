"""Pack quality scoring

Pure functions — no side effects, deterministic.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from src.core.drop.models import PackDefinition
from src.core.rarity import Rarity

# Rarity -> ordinal score, e.g. PackRegistry.numeric_value
ValueOf = Callable[[Rarity], int]


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def raw_score(rarities: Iterable[Rarity], value_of: Optional[ValueOf] = None) -> int:
    """Sum of ordinal values. Without a lookup the enum value is used."""
    if value_of is None:
        return sum(int(r) for r in rarities)
    return sum(value_of(r) for r in rarities)


def raw_quality(score: float, score_min: float, score_max: float) -> float:
    """Position of score inside [min, max]. Span floored at 1."""
    return clamp01((score - score_min) / max(1.0, score_max - score_min))


def biased_quality(quality: float, bias_exponent: float) -> float:
    """<1 is optimistic, 1 neutral, >1 stricter."""
    return clamp01(clamp01(quality) ** bias_exponent)


def quality01(
    rarities: Iterable[Rarity],
    pack: PackDefinition,
    value_of: Optional[ValueOf] = None,
) -> float:
    """Pull -> normalized, pack-biased quality in [0, 1]."""
    score = raw_score(rarities, value_of)
    return biased_quality(
        raw_quality(score, pack.score_min, pack.score_max), pack.bias_exponent
    )
