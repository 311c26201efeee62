"""Hook arbitration models"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class BlockReason(str, Enum):
    """Why a hook was not allowed to fire. Checked in this order."""

    GLOBAL_QUIET = "global_quiet"
    SESSION_CAP = "session_cap"
    COOLDOWN = "cooldown"


class HookTrigger(str, Enum):
    """Outcome condition under which a configured hook is attempted."""

    OUTCOME = "outcome"  # every successful pull
    NOTABLE = "notable"  # any rarity at/above the notable tier
    PITY = "pity"  # a pity guarantee was forced
    HOT_STREAK = "hot_streak"
    COLD_STREAK = "cold_streak"


@dataclass
class HookRecord:
    """Per-hook state, created lazily on first attempt."""

    hook_id: str
    cooldown_seconds: float = 0.0
    session_cap: int = 0
    cooldown_until: float = 0.0
    session_fires: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hook_id": self.hook_id,
            "cooldown_seconds": self.cooldown_seconds,
            "session_cap": self.session_cap,
            "cooldown_until": self.cooldown_until,
            "session_fires": self.session_fires,
        }


@dataclass(frozen=True)
class HookDecision:
    hook_id: str
    fired: bool
    block_reason: Optional[BlockReason] = None

    @property
    def reason_value(self) -> Optional[str]:
        return self.block_reason.value if self.block_reason else None


@dataclass(frozen=True)
class HookSpec:
    """Configured outcome hook (id, pacing limits, trigger)."""

    hook_id: str
    cooldown_seconds: float
    session_cap: int
    trigger: HookTrigger = HookTrigger.OUTCOME

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "HookSpec":
        """KeyError/ValueError on malformed entries."""
        return cls(
            hook_id=str(raw["hook_id"]),
            cooldown_seconds=float(raw.get("cooldown_seconds", 5.0)),
            session_cap=int(raw.get("session_cap", 5)),
            trigger=HookTrigger(raw.get("trigger", HookTrigger.OUTCOME.value)),
        )


# Single outcome hook shipped when the config defines none
DEFAULT_HOOK_SPECS: tuple[HookSpec, ...] = (
    HookSpec(hook_id="outcome_streak", cooldown_seconds=5.0, session_cap=5),
)
