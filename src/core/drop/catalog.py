"""Card catalog — concrete cards behind each rarity tier

A drawn rarity is turned into a card by picking uniformly among the
catalog cards of that tier. Empty tiers fall back to common.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from src.core.errors import ConfigurationError
from src.core.rarity import Rarity

logger = logging.getLogger(__name__)

FALLBACK_TIER = Rarity.COMMON


@dataclass(frozen=True)
class CatalogCard:
    """One collectible card. tier is the card's rarity."""

    uid: str
    tier: Rarity
    name: str
    team: str = ""
    element: str = ""
    position: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "tier": self.tier.key,
            "name": self.name,
            "team": self.team,
            "element": self.element,
            "position": self.position,
        }


def parse_card(raw: Mapping[str, Any]) -> CatalogCard:
    """cards_catalog.json entry -> CatalogCard. cardTier must be 1..5."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Card entry must be an object")
    try:
        uid = str(raw["uid"]).strip()
        tier = Rarity(int(raw["cardTier"]))
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Malformed card entry {raw.get('uid')!r}: {e!r}")
    if not uid:
        raise ConfigurationError("Card entry has an empty uid")
    return CatalogCard(
        uid=uid,
        tier=tier,
        name=str(raw.get("name") or uid),
        team=str(raw.get("team") or ""),
        element=str(raw.get("element") or ""),
        position=str(raw.get("position5") or raw.get("position") or ""),
    )


class CardCatalog:
    """Cards indexed by tier. Immutable after load."""

    def __init__(self, cards: Iterable[CatalogCard] = ()) -> None:
        self._by_tier: dict[Rarity, tuple[CatalogCard, ...]] = {}
        grouped: dict[Rarity, list[CatalogCard]] = {}
        for card in cards:
            grouped.setdefault(card.tier, []).append(card)
        for tier, tier_cards in grouped.items():
            self._by_tier[tier] = tuple(tier_cards)

    @classmethod
    def from_json(cls, path: str | Path) -> "CardCatalog":
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Card catalog not found at {path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Card catalog {path} is not valid JSON: {e}")

        catalog = cls.from_dict(raw)
        logger.info(
            "Loaded %d cards from %s (%s)",
            len(catalog),
            path,
            ", ".join(f"{k}: {n}" for k, n in catalog.tier_counts().items()),
        )
        return catalog

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CardCatalog":
        """{"cards": [...]}. Malformed or duplicate cards are skipped."""
        if not isinstance(raw, Mapping) or not isinstance(raw.get("cards"), list):
            raise ConfigurationError("Card catalog must be an object with a cards list")

        cards: list[CatalogCard] = []
        seen: set[str] = set()
        for entry in raw["cards"]:
            try:
                card = parse_card(entry)
            except ConfigurationError as e:
                logger.warning("Skipping card — %s", e)
                continue
            if card.uid in seen:
                logger.warning("Skipping duplicate card uid %s", card.uid)
                continue
            seen.add(card.uid)
            cards.append(card)
        return cls(cards)

    def __len__(self) -> int:
        return sum(len(cards) for cards in self._by_tier.values())

    def tier_counts(self) -> dict[str, int]:
        return {r.key: len(self._by_tier.get(r, ())) for r in Rarity}

    def pick(self, rarity: Rarity, rng: random.Random) -> Optional[CatalogCard]:
        """Uniform pick within the tier. None only when common is empty too."""
        cards = self._by_tier.get(rarity)
        if not cards:
            logger.warning(
                "No cards for tier %s, falling back to %s", rarity.key, FALLBACK_TIER.key
            )
            cards = self._by_tier.get(FALLBACK_TIER)
            if not cards:
                logger.error("Card catalog has no %s cards", FALLBACK_TIER.key)
                return None
        return rng.choice(cards)

    def pick_many(
        self, rarities: Iterable[Rarity], rng: random.Random
    ) -> list[Optional[CatalogCard]]:
        return [self.pick(r, rng) for r in rarities]
