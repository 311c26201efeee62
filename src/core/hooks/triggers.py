"""Which configured hooks a pull outcome is eligible to attempt"""

from __future__ import annotations

from typing import Iterable

from src.core.drop.models import DropResult
from src.core.emotion.calculations import has_notable
from src.core.emotion.models import EmotionTuning, EmotionUpdate
from src.core.hooks.models import HookSpec, HookTrigger


def trigger_matches(
    trigger: HookTrigger,
    drop: DropResult,
    update: EmotionUpdate,
    tuning: EmotionTuning,
) -> bool:
    if trigger is HookTrigger.OUTCOME:
        return True
    if trigger is HookTrigger.NOTABLE:
        return has_notable(drop.rarities, tuning.notable_rarity)
    if trigger is HookTrigger.PITY:
        return drop.pity_triggered
    if trigger is HookTrigger.HOT_STREAK:
        return update.streak > tuning.streak_threshold
    if trigger is HookTrigger.COLD_STREAK:
        return update.streak < -tuning.streak_threshold
    return False


def eligible_hooks(
    specs: Iterable[HookSpec],
    drop: DropResult,
    update: EmotionUpdate,
    tuning: EmotionTuning,
) -> list[HookSpec]:
    """Specs in configured order whose trigger holds for this outcome."""
    return [s for s in specs if trigger_matches(s.trigger, drop, update, tuning)]
