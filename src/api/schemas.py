"""API request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class OpenPackRequest(BaseModel):
    """Pack opening request"""

    pack_key: str = Field(..., min_length=1, description="Pack type key, e.g. 'bronze_pack'")


# === Response Schemas ===


class PityInfo(BaseModel):
    enabled: bool
    rare_after: Optional[int] = None
    epic_after: Optional[int] = None
    legendary_after: Optional[int] = None


class PackInfo(BaseModel):
    """Pack catalogue entry"""

    key: str
    name: str
    cost: int
    pull_count: int
    drop_rates: dict[str, float]
    score_min: int
    score_max: int
    bias_exponent: float
    pity: PityInfo
    modifiers: list[str] = []


class HookDecisionInfo(BaseModel):
    hook_id: str
    fired: bool
    block_reason: Optional[str] = None


class EmotionInfo(BaseModel):
    """Realized deltas and post-update meters"""

    quality01: float
    satisfaction: float
    frustration: float
    satisfaction_delta: float
    frustration_delta: float
    streak: float
    cumulative_score: float


class CardInfo(BaseModel):
    """Catalog card drawn for one slot"""

    uid: str
    tier: str
    name: str
    team: str = ""
    element: str = ""
    position: str = ""


class PullResponse(BaseModel):
    """Pack opening result"""

    success: bool
    session_id: str
    event_id: str
    pack_key: str
    pack_name: str
    rarities: list[str]
    cards: list[Optional[CardInfo]] = []
    pity_triggered: bool
    pity_tier: Optional[str] = None
    emotion: EmotionInfo
    hooks: list[HookDecisionInfo] = []


class PityCountersInfo(BaseModel):
    since_rare: int
    since_epic: int
    since_legendary: int


class HookRecordInfo(BaseModel):
    hook_id: str
    cooldown_seconds: float
    session_cap: int
    cooldown_until: float
    session_fires: int


class SessionStateResponse(BaseModel):
    """Session meters, pity and hook state"""

    session_id: str
    pull_count: int
    satisfaction: float
    frustration: float
    window: list[float] = []
    pity: dict[str, PityCountersInfo] = {}
    hooks: list[HookRecordInfo] = []
    global_quiet_until: float = 0.0


class PullLogInfo(BaseModel):
    """Persisted telemetry row"""

    event_id: str
    pack_key: str
    pack_name: str
    rarities: list[str]
    card_ids: list[Optional[str]] = []
    pity_triggered: bool
    pity_tier: Optional[str] = None
    quality01: float
    satisfaction_after: float
    frustration_after: float
    satisfaction_delta: float
    frustration_delta: float
    cumulative_score: float


class HistoryResponse(BaseModel):
    session_id: str
    pulls: list[PullLogInfo] = []


class ClearHistoryResponse(BaseModel):
    session_id: str
    removed: int


class ErrorResponse(BaseModel):
    """Error response"""

    success: bool = False
    error: str
    detail: Optional[str] = None
