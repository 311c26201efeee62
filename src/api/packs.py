"""Pack catalogue and session endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.schemas import (
    CardInfo,
    ClearHistoryResponse,
    EmotionInfo,
    ErrorResponse,
    HistoryResponse,
    HookDecisionInfo,
    OpenPackRequest,
    PackInfo,
    PityInfo,
    PullLogInfo,
    PullResponse,
    SessionStateResponse,
)
from src.core.drop.models import PackDefinition, Rarity
from src.core.logging import get_logger
from src.core.session import PullOutcome, SessionState
from src.services.pack_service import PackService
from src.services.telemetry_service import TelemetryService

logger = get_logger(__name__)

router = APIRouter(tags=["packs"])


def get_pack_service(request: Request) -> PackService:
    """PackService instance (dependency injection)"""
    service: PackService = request.app.state.pack_service
    return service


def get_telemetry_service(request: Request) -> TelemetryService:
    """TelemetryService instance (dependency injection)"""
    service: TelemetryService = request.app.state.telemetry_service
    return service


def _build_pack_info(pack: PackDefinition) -> PackInfo:
    return PackInfo(
        key=pack.key,
        name=pack.name,
        cost=pack.cost,
        pull_count=pack.pull_count,
        drop_rates={r.key: pack.weight_of(r) for r in Rarity},
        score_min=pack.score_min,
        score_max=pack.score_max,
        bias_exponent=pack.bias_exponent,
        pity=PityInfo(
            enabled=pack.pity.enabled,
            rare_after=pack.pity.rare_after,
            epic_after=pack.pity.epic_after,
            legendary_after=pack.pity.legendary_after,
        ),
        modifiers=sorted(pack.modifiers),
    )


def _build_pull_response(outcome: PullOutcome) -> PullResponse:
    emotion = outcome.emotion
    return PullResponse(
        success=True,
        session_id=outcome.session_id,
        event_id=outcome.event_id,
        pack_key=outcome.pack_key,
        pack_name=outcome.pack_name,
        rarities=outcome.rarity_keys,
        cards=[CardInfo(**c.to_dict()) if c else None for c in outcome.cards],
        pity_triggered=outcome.pity_triggered,
        pity_tier=outcome.pity_tier.key if outcome.pity_tier else None,
        emotion=EmotionInfo(
            quality01=emotion.quality01,
            satisfaction=emotion.satisfaction,
            frustration=emotion.frustration,
            satisfaction_delta=emotion.satisfaction_delta,
            frustration_delta=emotion.frustration_delta,
            streak=emotion.streak,
            cumulative_score=emotion.cumulative_score,
        ),
        hooks=[
            HookDecisionInfo(
                hook_id=d.hook_id, fired=d.fired, block_reason=d.reason_value
            )
            for d in outcome.hooks
        ],
    )


def _build_state_response(session: SessionState) -> SessionStateResponse:
    return SessionStateResponse(**session.to_dict())


@router.get("/packs", response_model=list[PackInfo])
def list_packs(service: PackService = Depends(get_pack_service)) -> list[PackInfo]:
    """Configured pack types."""
    return [_build_pack_info(p) for p in service.list_packs()]


@router.post(
    "/sessions/{session_id}/open",
    response_model=PullResponse,
    responses={404: {"model": ErrorResponse}},
)
def open_pack(
    session_id: str,
    request: OpenPackRequest,
    service: PackService = Depends(get_pack_service),
) -> PullResponse:
    """
    Open one pack

    Runs draw → score → emotion update → hook arbitration for the session.
    Unknown or malformed pack keys fail closed with 404.
    """
    outcome = service.open_pack(session_id, request.pack_key)
    if not outcome.ok:
        raise HTTPException(status_code=404, detail=outcome.error)
    return _build_pull_response(outcome)


@router.post("/sessions/{session_id}/reset", response_model=SessionStateResponse)
def reset_session(
    session_id: str,
    service: PackService = Depends(get_pack_service),
) -> SessionStateResponse:
    """Clear pity counters, emotion meters and hook state."""
    session = service.reset_session(session_id)
    return _build_state_response(session)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionStateResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_session_state(
    session_id: str,
    service: PackService = Depends(get_pack_service),
) -> SessionStateResponse:
    session = service.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return _build_state_response(session)


@router.get("/sessions/{session_id}/history", response_model=HistoryResponse)
def get_history(
    session_id: str,
    count: int = Query(10, ge=1, le=1000),
    telemetry: TelemetryService = Depends(get_telemetry_service),
) -> HistoryResponse:
    """Most recent pulls, oldest first."""
    rows = telemetry.get_recent(session_id, count)
    return HistoryResponse(
        session_id=session_id,
        pulls=[
            PullLogInfo(
                event_id=r.event_id,
                pack_key=r.pack_key,
                pack_name=r.pack_name,
                rarities=list(r.rarities or []),
                card_ids=list(r.card_ids or []),
                pity_triggered=r.pity_triggered,
                pity_tier=r.pity_tier,
                quality01=r.quality01,
                satisfaction_after=r.satisfaction_after,
                frustration_after=r.frustration_after,
                satisfaction_delta=r.satisfaction_delta,
                frustration_delta=r.frustration_delta,
                cumulative_score=r.cumulative_score,
            )
            for r in rows
        ],
    )


@router.delete("/sessions/{session_id}/history", response_model=ClearHistoryResponse)
def clear_history(
    session_id: str,
    telemetry: TelemetryService = Depends(get_telemetry_service),
) -> ClearHistoryResponse:
    """Drop the session's persisted pull and hook logs. Live state is kept."""
    removed = telemetry.clear_session(session_id)
    return ClearHistoryResponse(session_id=session_id, removed=removed)
