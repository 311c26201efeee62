"""Drop resolution Core — pure Python, DB-independent"""

from src.core.rarity import Rarity, RarityTier, default_rarity_tiers

from .catalog import CardCatalog, CatalogCard
from .models import DropResult, PackDefinition, PityCounters, PityRules
from .registry import PackRegistry
from .resolver import DropResolver, check_pity, weighted_roll
from .scoring import quality01, raw_quality, raw_score

__all__ = [
    "CardCatalog",
    "CatalogCard",
    "DropResult",
    "PackDefinition",
    "PityCounters",
    "PityRules",
    "Rarity",
    "RarityTier",
    "default_rarity_tiers",
    "PackRegistry",
    "DropResolver",
    "check_pity",
    "weighted_roll",
    "quality01",
    "raw_quality",
    "raw_score",
]
