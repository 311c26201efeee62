"""Drop domain models (DB-independent)"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from src.core.rarity import Rarity

# Tiers tracked by pity counters, most severe first
PITY_TIERS: tuple[Rarity, ...] = (Rarity.LEGENDARY, Rarity.EPIC, Rarity.RARE)

MODIFIER_FLOOR_AT_RARE = "floor_at_rare"
KNOWN_MODIFIERS: frozenset[str] = frozenset({MODIFIER_FLOOR_AT_RARE})


@dataclass(frozen=True)
class PityRules:
    """Guarantee thresholds. None = no guarantee for that tier."""

    enabled: bool = True
    rare_after: Optional[int] = None
    epic_after: Optional[int] = None
    legendary_after: Optional[int] = None

    def threshold_for(self, rarity: Rarity) -> Optional[int]:
        if not self.enabled:
            return None
        return {
            Rarity.RARE: self.rare_after,
            Rarity.EPIC: self.epic_after,
            Rarity.LEGENDARY: self.legendary_after,
        }.get(rarity)


@dataclass(frozen=True)
class PackDefinition:
    """Per-pack tuning. Immutable for the session."""

    key: str
    name: str
    pull_count: int
    drop_rates: dict[Rarity, float]
    score_min: int
    score_max: int
    bias_exponent: float = 1.0
    pity: PityRules = field(default_factory=PityRules)
    modifiers: frozenset[str] = frozenset()
    cost: int = 0  # informational, wallet lives outside the core

    def weight_of(self, rarity: Rarity) -> float:
        """Negative weights count as zero."""
        return max(0.0, float(self.drop_rates.get(rarity, 0.0)))

    @property
    def total_weight(self) -> float:
        return sum(self.weight_of(r) for r in Rarity)

    @property
    def floor_at_rare(self) -> bool:
        return MODIFIER_FLOOR_AT_RARE in self.modifiers


@dataclass
class PityCounters:
    """Consecutive pulls since each guaranteed tier, per pack key."""

    since_rare: int = 0
    since_epic: int = 0
    since_legendary: int = 0

    def since(self, rarity: Rarity) -> int:
        return {
            Rarity.RARE: self.since_rare,
            Rarity.EPIC: self.since_epic,
            Rarity.LEGENDARY: self.since_legendary,
        }[rarity]

    def record(self, drawn: Rarity) -> None:
        """Advance/reset each counter independently against its own cutoff."""
        self.since_rare = 0 if drawn >= Rarity.RARE else self.since_rare + 1
        self.since_epic = 0 if drawn >= Rarity.EPIC else self.since_epic + 1
        self.since_legendary = (
            0 if drawn >= Rarity.LEGENDARY else self.since_legendary + 1
        )

    def copy(self) -> "PityCounters":
        return PityCounters(
            since_rare=self.since_rare,
            since_epic=self.since_epic,
            since_legendary=self.since_legendary,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "since_rare": self.since_rare,
            "since_epic": self.since_epic,
            "since_legendary": self.since_legendary,
        }


@dataclass
class DropResult:
    """One pack's worth of draws."""

    pack_key: str
    rarities: list[Rarity] = field(default_factory=list)
    pity_triggered: bool = False
    pity_tier: Optional[Rarity] = None
    # counters after this pack, not yet stored on the session
    pity_after: Optional[PityCounters] = field(default=None, repr=False)

    @property
    def rarity_keys(self) -> list[str]:
        return [r.key for r in self.rarities]

    @property
    def is_empty(self) -> bool:
        return not self.rarities
