"""Per-session context: pity counters, emotion meters, hook state

One SessionState per player session. Its lock serialises pull chains and
resets for that session; different sessions never share mutable state.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from src.core.drop.catalog import CatalogCard
from src.core.drop.models import DropResult, PityCounters, Rarity
from src.core.emotion.models import EmotionMeters, EmotionUpdate
from src.core.hooks.arbiter import HookArbiter
from src.core.hooks.models import HookDecision


@dataclass
class SessionState:
    session_id: str
    rng: random.Random
    meters: EmotionMeters
    hooks: HookArbiter
    pity: dict[str, PityCounters] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    pull_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "pull_count": self.pull_count,
            "satisfaction": self.meters.satisfaction,
            "frustration": self.meters.frustration,
            "window": list(self.meters.window),
            "pity": {key: c.to_dict() for key, c in self.pity.items()},
            "hooks": [r.to_dict() for r in self.hooks.records],
            "global_quiet_until": self.hooks.global_quiet_until,
        }


@dataclass
class PullOutcome:
    """Everything one pack-open produces for presentation and telemetry.

    On ConfigurationError only pack_key, session_id and error are set.
    """

    session_id: str
    pack_key: str
    event_id: str = ""
    pack_name: str = ""
    cost: int = 0
    rarities: list[Rarity] = field(default_factory=list)
    cards: list[Optional[CatalogCard]] = field(default_factory=list)
    pity_triggered: bool = False
    pity_tier: Optional[Rarity] = None
    emotion: Optional[EmotionUpdate] = None
    hooks: list[HookDecision] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def rarity_keys(self) -> list[str]:
        return [r.key for r in self.rarities]

    @property
    def card_ids(self) -> list[Optional[str]]:
        return [c.uid if c else None for c in self.cards]

    @classmethod
    def from_drop(
        cls,
        session_id: str,
        event_id: str,
        pack_name: str,
        cost: int,
        drop: DropResult,
        emotion: EmotionUpdate,
        cards: Optional[list[Optional[CatalogCard]]] = None,
    ) -> "PullOutcome":
        return cls(
            session_id=session_id,
            pack_key=drop.pack_key,
            event_id=event_id,
            pack_name=pack_name,
            cost=cost,
            rarities=list(drop.rarities),
            cards=list(cards or []),
            pity_triggered=drop.pity_triggered,
            pity_tier=drop.pity_tier,
            emotion=emotion,
        )

    def to_event_data(self) -> dict[str, Any]:
        """Flat, JSON-friendly payload for the event bus."""
        emotion = self.emotion
        return {
            "event_id": self.event_id,
            "session_id": self.session_id,
            "pack_key": self.pack_key,
            "pack_name": self.pack_name,
            "cost": self.cost,
            "rarities": self.rarity_keys,
            "card_ids": self.card_ids,
            "pity_triggered": self.pity_triggered,
            "pity_tier": self.pity_tier.key if self.pity_tier else None,
            "quality01": emotion.quality01 if emotion else None,
            "satisfaction_after": emotion.satisfaction if emotion else None,
            "frustration_after": emotion.frustration if emotion else None,
            "satisfaction_delta": emotion.satisfaction_delta if emotion else None,
            "frustration_delta": emotion.frustration_delta if emotion else None,
            "cumulative_score": emotion.cumulative_score if emotion else None,
            "hooks": [
                {"hook_id": d.hook_id, "fired": d.fired, "block_reason": d.reason_value}
                for d in self.hooks
            ],
        }
