"""Drop resolution — weighted sampling + pity escalation"""

from __future__ import annotations

import logging
import random
from typing import Mapping, MutableMapping, Optional

from src.core.drop.models import (
    PITY_TIERS,
    DropResult,
    PackDefinition,
    PityCounters,
    Rarity,
)
from src.core.drop.registry import PackRegistry

logger = logging.getLogger(__name__)


def weighted_roll(pack: PackDefinition, rng: random.Random) -> Rarity:
    """Cumulative weighted draw, walking common -> legendary.

    Total weight <= 0 resolves to the lowest tier.
    """
    total = pack.total_weight
    if total <= 0:
        return Rarity.COMMON

    roll = rng.random() * total
    chosen = Rarity.COMMON
    for rarity in Rarity:
        weight = pack.weight_of(rarity)
        if weight <= 0:
            continue
        chosen = rarity
        roll -= weight
        if roll < 0:
            return rarity
    # float rounding left a non-negative remainder: last weighted tier wins
    return chosen


def check_pity(pack: PackDefinition, counters: PityCounters) -> Optional[Rarity]:
    """Most severe tier whose guarantee is due, or None."""
    for rarity in PITY_TIERS:
        threshold = pack.pity.threshold_for(rarity)
        if threshold is not None and counters.since(rarity) >= threshold:
            return rarity
    return None


def apply_floor(pack: PackDefinition, rarity: Rarity) -> Rarity:
    if pack.floor_at_rare and rarity < Rarity.RARE:
        return Rarity.RARE
    return rarity


class DropResolver:
    """Resolves one pack's draws against per-pack pity counters."""

    def __init__(self, registry: PackRegistry, rng: Optional[random.Random] = None):
        self._registry = registry
        self._rng = rng or random.Random()

    def resolve(
        self,
        pack_key: str,
        pity_by_pack: Mapping[str, PityCounters],
        rng: Optional[random.Random] = None,
    ) -> DropResult:
        """Draw pull_count rarities for pack_key.

        pity_by_pack is only read. Counters are advanced on a copy returned as
        result.pity_after; call commit() once the rest of the chain succeeded.
        ConfigurationError for unknown keys.
        """
        pack = self._registry.require(pack_key)
        rng = rng or self._rng

        counters = pity_by_pack.get(pack_key, PityCounters()).copy()
        result = DropResult(pack_key=pack_key)

        for _ in range(pack.pull_count):
            forced = check_pity(pack, counters)
            if forced is not None:
                drawn = forced
                result.pity_triggered = True
                if result.pity_tier is None or forced > result.pity_tier:
                    result.pity_tier = forced
                logger.debug(
                    "Pity forced %s on %s (counters=%s)",
                    forced.key,
                    pack_key,
                    counters.to_dict(),
                )
            else:
                drawn = apply_floor(pack, weighted_roll(pack, rng))
            counters.record(drawn)
            result.rarities.append(drawn)

        result.pity_after = counters
        return result

    @staticmethod
    def commit(
        result: DropResult, pity_by_pack: MutableMapping[str, PityCounters]
    ) -> None:
        """Store the counters a resolved pack advanced."""
        if result.pity_after is not None:
            pity_by_pack[result.pack_key] = result.pity_after
