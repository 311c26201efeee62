"""Emotion meter domain models (DB-independent)"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from src.core.rarity import Rarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmotionTuning:
    """Every numeric knob of the emotion pipeline, with its default.

    Stage order lives in EmotionEngine; the values live here.
    """

    # meter bounds
    meter_min: float = 0.0
    meter_max: float = 100.0

    # 1. base curves: dS = q^s_exp * s_max, dF = (1-q)^f_exp * f_max
    s_max: float = 10.0
    f_max: float = 10.0
    satisfaction_exponent: float = 0.7
    frustration_exponent: float = 1.2

    # 2. rare boost
    notable_rarity: Rarity = Rarity.RARE
    rare_boost: float = 1.5

    # 3. quality-driven frustration reduction
    good_threshold: float = 0.7
    good_frustration_relief: float = 1.0  # fraction of f_max removed at q=1
    bad_threshold: float = 0.3
    bad_frustration_relief: float = 0.3  # dF shrinks by up to 30%

    # 4. neutral band
    neutral_center: float = 0.5
    neutral_half_width: float = 0.05
    neutral_damping: float = 0.6

    # 5. cross-coupling
    coupling_k: float = 0.075

    # 6. rolling streak
    window_size: int = 5
    streak_baseline: float = 0.5
    streak_threshold: float = 0.15
    hot_satisfaction_gain: float = 1.2
    hot_frustration_scale: float = 0.9
    cold_satisfaction_loss_scale: float = 0.7
    cold_frustration_scale: float = 0.75

    # 7. decay-before-add
    satisfaction_decay: float = 0.98
    frustration_decay: float = 0.97

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "EmotionTuning":
        """Build from a config section. Missing keys keep their defaults.

        Accepts the legacy "S_max"/"F_max" spelling. Unknown keys and values
        that fail conversion are logged and ignored.
        """
        if not raw:
            return cls()
        if not isinstance(raw, Mapping):
            logger.warning("emotion_parameters must be an object, using defaults")
            return cls()

        aliases = {"S_max": "s_max", "F_max": "f_max"}
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in raw.items():
            name = aliases.get(raw_key, raw_key)
            if name not in known:
                logger.debug("Ignoring unknown emotion parameter: %s", raw_key)
                continue
            try:
                if name == "notable_rarity":
                    kwargs[name] = (
                        Rarity.from_key(value)
                        if isinstance(value, str)
                        else Rarity(int(value))
                    )
                elif name == "window_size":
                    kwargs[name] = max(1, int(value))
                else:
                    kwargs[name] = float(value)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(
                    "Invalid emotion parameter %s=%r, using default — %s",
                    raw_key,
                    value,
                    e,
                )
        tuning = cls(**kwargs)
        if tuning.meter_max < tuning.meter_min:
            logger.warning("meter_max < meter_min, using default bounds")
            tuning = cls(**{**kwargs, "meter_min": 0.0, "meter_max": 100.0})
        return tuning


@dataclass
class EmotionMeters:
    """Session-scoped meters plus the rolling quality window."""

    satisfaction: float = 0.0
    frustration: float = 0.0
    window: deque[float] = field(default_factory=lambda: deque(maxlen=5))
    last_satisfaction_delta: float = 0.0
    last_frustration_delta: float = 0.0
    pulls: int = 0

    @classmethod
    def for_tuning(cls, tuning: EmotionTuning) -> "EmotionMeters":
        return cls(
            satisfaction=tuning.meter_min,
            frustration=tuning.meter_min,
            window=deque(maxlen=tuning.window_size),
        )

    def snapshot(self) -> tuple[float, float]:
        return self.satisfaction, self.frustration


@dataclass(frozen=True)
class StageTrace:
    """Delta pair after a pipeline stage, for tuning diagnostics."""

    stage: str
    satisfaction: float
    frustration: float


@dataclass
class EmotionUpdate:
    """Result of one pull through the emotion pipeline."""

    quality01: float
    satisfaction_delta: float  # realized: post - pre, after decay and clamp
    frustration_delta: float
    satisfaction: float
    frustration: float
    streak: float = 0.0
    trace: list[StageTrace] = field(default_factory=list)

    @property
    def cumulative_score(self) -> float:
        return self.satisfaction - self.frustration
