"""Pack/rarity table — JSON load + validation"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from src.core.drop.models import KNOWN_MODIFIERS, PackDefinition, PityRules
from src.core.rarity import Rarity, RarityTier, default_rarity_tiers
from src.core.emotion.models import EmotionTuning
from src.core.errors import ConfigurationError
from src.core.hooks.models import DEFAULT_HOOK_SPECS, HookSpec

logger = logging.getLogger(__name__)


def _optional_threshold(raw: Mapping[str, Any], key: str) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        return None
    value = int(value)
    if value <= 0:
        return None
    return value


def require_all_rarities(tiers: Mapping[Rarity, RarityTier]) -> None:
    missing = [r.key for r in Rarity if r not in tiers]
    if missing:
        raise ConfigurationError(f"Missing rarity keys: {', '.join(missing)}")


def _section(raw: Mapping[str, Any], key: str, owner: str) -> Mapping[str, Any]:
    """Optional sub-mapping. Absent or null -> empty; any other type is a defect."""
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{owner}: {key} must be an object", key=owner)
    return value


def parse_rarity_tiers(raw: Mapping[str, Any]) -> dict[Rarity, RarityTier]:
    """rarity_values section -> tier table. All five rarities are required."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError("rarity_values must be an object")
    tiers: dict[Rarity, RarityTier] = {}
    for key, entry in raw.items():
        try:
            rarity = Rarity.from_key(key)
        except KeyError:
            raise ConfigurationError(f"Unknown rarity key: {key}", key=key)
        try:
            tiers[rarity] = RarityTier(
                rarity=rarity,
                numeric_value=int(entry["numeric_value"]),
                display_name=str(entry.get("display_name", rarity.name.title())),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed rarity entry {key}: {e}", key=key)

    require_all_rarities(tiers)
    return tiers


def parse_pack(key: str, raw: Mapping[str, Any]) -> PackDefinition:
    """pack_types entry -> PackDefinition. ConfigurationError on any defect."""
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Pack {key}: entry must be an object", key=key)

    owner = f"Pack {key}"
    try:
        drop_rates: dict[Rarity, float] = {}
        for rarity_key, weight in _section(raw, "drop_rates", owner).items():
            try:
                rarity = Rarity.from_key(rarity_key)
            except KeyError:
                raise ConfigurationError(
                    f"Pack {key}: unknown rarity in drop_rates: {rarity_key}", key=key
                )
            weight = float(weight)
            if weight < 0:
                raise ConfigurationError(
                    f"Pack {key}: negative weight for {rarity_key}", key=key
                )
            drop_rates[rarity] = weight

        pull_count = int(raw["guaranteed_cards"])
        if pull_count < 1:
            raise ConfigurationError(f"Pack {key}: guaranteed_cards < 1", key=key)

        if "score_range" not in raw:
            raise ConfigurationError(f"Pack {key}: score_range missing", key=key)
        score_range = _section(raw, "score_range", owner)
        score_min = int(score_range["min_score"])
        score_max = int(score_range["max_score"])
        if score_max < score_min:
            raise ConfigurationError(f"Pack {key}: max_score < min_score", key=key)

        bias = float(raw.get("bias_exponent", 1.0))
        if bias <= 0:
            raise ConfigurationError(f"Pack {key}: bias_exponent must be > 0", key=key)

        pity_raw = _section(raw, "pity_rules", owner)
        pity = PityRules(
            enabled=bool(pity_raw.get("enabled", bool(pity_raw))),
            rare_after=_optional_threshold(pity_raw, "rare_guarantee_after"),
            epic_after=_optional_threshold(pity_raw, "epic_guarantee_after"),
            legendary_after=_optional_threshold(pity_raw, "legendary_guarantee_after"),
        )

        modifiers = frozenset(raw.get("special_modifiers") or ())
        unknown = modifiers - KNOWN_MODIFIERS
        if unknown:
            raise ConfigurationError(
                f"Pack {key}: unknown modifiers {sorted(unknown)}", key=key
            )

        cost = raw.get("cost", 0)
        if isinstance(cost, Mapping):
            cost = cost.get("coins", 0)

        return PackDefinition(
            key=key,
            name=str(raw.get("name", key)),
            pull_count=pull_count,
            drop_rates=drop_rates,
            score_min=score_min,
            score_max=score_max,
            bias_exponent=bias,
            pity=pity,
            modifiers=modifiers,
            cost=int(cost),
        )
    except ConfigurationError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Pack {key}: malformed entry — {e!r}", key=key)


class PackRegistry:
    """
    Immutable-after-load pack and rarity tables.
    Malformed packs are skipped so that pulling them fails closed.
    """

    def __init__(
        self,
        packs: Optional[Mapping[str, PackDefinition]] = None,
        rarities: Optional[Mapping[Rarity, RarityTier]] = None,
        emotion_tuning: Optional[EmotionTuning] = None,
        hook_specs: Optional[tuple[HookSpec, ...]] = None,
    ) -> None:
        self._packs: dict[str, PackDefinition] = dict(packs or {})
        self._rarities: dict[Rarity, RarityTier] = dict(
            rarities or default_rarity_tiers()
        )
        require_all_rarities(self._rarities)
        self.emotion_tuning: EmotionTuning = emotion_tuning or EmotionTuning()
        self.hook_specs: tuple[HookSpec, ...] = (
            DEFAULT_HOOK_SPECS if hook_specs is None else tuple(hook_specs)
        )

    @classmethod
    def from_json(cls, path: str | Path) -> "PackRegistry":
        """Load drop_config.json. ConfigurationError if the file is unusable."""
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Config not found at {path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Config {path} is not valid JSON: {e}")

        registry = cls.from_dict(raw)
        logger.info(
            "Loaded %d pack types and %d rarity tiers from %s",
            len(registry.pack_keys()),
            len(registry.rarities),
            path,
        )
        return registry

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PackRegistry":
        if not isinstance(raw, Mapping):
            raise ConfigurationError("Config root must be an object")
        if "rarity_values" not in raw or "pack_types" not in raw:
            raise ConfigurationError("Missing pack_types or rarity_values")
        if not isinstance(raw["pack_types"], Mapping):
            raise ConfigurationError("pack_types must be an object")

        rarities = parse_rarity_tiers(raw["rarity_values"])

        packs: dict[str, PackDefinition] = {}
        for key, entry in raw["pack_types"].items():
            try:
                packs[key] = parse_pack(key, entry)
            except ConfigurationError as e:
                logger.warning("Skipping pack %s — %s", key, e)

        hook_specs: list[HookSpec] = []
        for entry in raw.get("hooks") or ():
            try:
                hook_specs.append(HookSpec.from_mapping(entry))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping hook spec %r — %s", entry, e)

        return cls(
            packs=packs,
            rarities=rarities,
            emotion_tuning=EmotionTuning.from_mapping(raw.get("emotion_parameters")),
            hook_specs=tuple(hook_specs) if "hooks" in raw else None,
        )

    # === Lookup ===

    @property
    def packs(self) -> Mapping[str, PackDefinition]:
        return MappingProxyType(self._packs)

    @property
    def rarities(self) -> Mapping[Rarity, RarityTier]:
        return MappingProxyType(self._rarities)

    def get(self, pack_key: str) -> Optional[PackDefinition]:
        return self._packs.get(pack_key)

    def require(self, pack_key: str) -> PackDefinition:
        """Fail closed on unknown keys."""
        pack = self._packs.get(pack_key)
        if pack is None:
            raise ConfigurationError(f"Pack type not found: {pack_key}", key=pack_key)
        return pack

    def tier(self, rarity: Rarity) -> RarityTier:
        tier = self._rarities.get(rarity)
        if tier is None:
            raise ConfigurationError(
                f"Rarity tier not configured: {rarity.key}", key=rarity.key
            )
        return tier

    def numeric_value(self, rarity: Rarity) -> int:
        return self.tier(rarity).numeric_value

    def pack_keys(self) -> list[str]:
        return list(self._packs)
