"""Emotion engine — quality01 -> bounded satisfaction/frustration updates

Stage order is fixed; reordering changes outcomes:

1. base curves          5. cross-coupling
2. rare boost           6. rolling streak (window before this pull)
3. quality reduction    7. decay existing meters, then add
4. neutral damping      8. clamp, push quality into the window
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional, Sequence

from src.core.rarity import Rarity
from src.core.emotion.calculations import (
    apply_cross_coupling,
    apply_neutral_damping,
    apply_quality_reduction,
    apply_rare_boost,
    apply_streak,
    base_deltas,
    clamp_meter,
    decay_meters,
    streak_value,
)
from src.core.emotion.models import (
    EmotionMeters,
    EmotionTuning,
    EmotionUpdate,
    StageTrace,
)

logger = logging.getLogger(__name__)


class EmotionEngine:
    """Applies one pull to an EmotionMeters instance owned by the caller."""

    def __init__(self, tuning: Optional[EmotionTuning] = None) -> None:
        self.tuning = tuning or EmotionTuning()

    def new_meters(self) -> EmotionMeters:
        return EmotionMeters.for_tuning(self.tuning)

    def reset(self, meters: EmotionMeters) -> None:
        """Back to session-start values, in place."""
        meters.satisfaction = self.tuning.meter_min
        meters.frustration = self.tuning.meter_min
        meters.window = deque(maxlen=self.tuning.window_size)
        meters.last_satisfaction_delta = 0.0
        meters.last_frustration_delta = 0.0
        meters.pulls = 0

    def apply(
        self,
        meters: EmotionMeters,
        quality: float,
        rarities: Sequence[Rarity],
    ) -> EmotionUpdate:
        t = self.tuning
        q = max(0.0, min(1.0, quality))
        trace: list[StageTrace] = []

        d_s, d_f = base_deltas(q, t)
        trace.append(StageTrace("base", d_s, d_f))

        d_s = apply_rare_boost(d_s, rarities, t)
        trace.append(StageTrace("rare_boost", d_s, d_f))

        d_f = apply_quality_reduction(d_f, q, t)
        trace.append(StageTrace("quality_reduction", d_s, d_f))

        d_s, d_f = apply_neutral_damping(d_s, d_f, q, t)
        trace.append(StageTrace("neutral_damping", d_s, d_f))

        d_s, d_f = apply_cross_coupling(d_s, d_f, t)
        trace.append(StageTrace("cross_coupling", d_s, d_f))

        streak = streak_value(meters.window, t)
        d_s, d_f = apply_streak(d_s, d_f, streak, t)
        trace.append(StageTrace("streak", d_s, d_f))

        before_s, before_f = meters.snapshot()
        decayed_s, decayed_f = decay_meters(before_s, before_f, t)

        meters.satisfaction = clamp_meter(decayed_s + d_s, t)
        meters.frustration = clamp_meter(decayed_f + d_f, t)

        if meters.window.maxlen != t.window_size:
            meters.window = deque(meters.window, maxlen=t.window_size)
        meters.window.append(q)

        meters.last_satisfaction_delta = meters.satisfaction - before_s
        meters.last_frustration_delta = meters.frustration - before_f
        meters.pulls += 1

        logger.debug(
            "Emotion update q=%.3f streak=%+.3f S=%.2f (%+.2f) F=%.2f (%+.2f)",
            q,
            streak,
            meters.satisfaction,
            meters.last_satisfaction_delta,
            meters.frustration,
            meters.last_frustration_delta,
        )

        return EmotionUpdate(
            quality01=q,
            satisfaction_delta=meters.last_satisfaction_delta,
            frustration_delta=meters.last_frustration_delta,
            satisfaction=meters.satisfaction,
            frustration=meters.frustration,
            streak=streak,
            trace=trace,
        )
