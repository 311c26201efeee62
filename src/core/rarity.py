"""Rarity enumeration and tier data — shared leaf module"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Rarity(IntEnum):
    """Closed rarity enumeration. Values are the default ordinal scores."""

    COMMON = 1
    UNCOMMON = 2
    RARE = 3
    EPIC = 4
    LEGENDARY = 5

    @property
    def key(self) -> str:
        return self.name.lower()

    @classmethod
    def from_key(cls, key: str) -> "Rarity":
        """"rare" -> Rarity.RARE. Unknown keys raise KeyError."""
        return cls[key.strip().upper()]


@dataclass(frozen=True)
class RarityTier:
    """Rarity display/scoring data. Loaded once."""

    rarity: Rarity
    numeric_value: int
    display_name: str

    @property
    def key(self) -> str:
        return self.rarity.key


def default_rarity_tiers() -> dict[Rarity, RarityTier]:
    """Built-in table: ordinal value == enum value."""
    return {
        r: RarityTier(rarity=r, numeric_value=int(r), display_name=r.name.title())
        for r in Rarity
    }
