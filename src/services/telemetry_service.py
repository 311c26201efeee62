"""Telemetry Service — persists outcome + emotional-state snapshots

Subscribes to pack_opened on the EventBus; never called by PackService
directly. History is capped per session (oldest rows trimmed).
"""

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.db.models import HookLogModel, PullLogModel

logger = get_logger(__name__)


class TelemetryService:
    """Pull/hook log sink + recent-history queries"""

    def __init__(self, db: Session, event_bus: EventBus, max_logs: int = 1000):
        self._db = db
        self._bus = event_bus
        self._max_logs = max(1, max_logs)
        self._register_event_handlers()

    def _register_event_handlers(self) -> None:
        self._bus.subscribe(EventTypes.PACK_OPENED, self._on_pack_opened)

    # === Event handlers ===

    def _on_pack_opened(self, event: GameEvent) -> None:
        data = event.data
        try:
            self._db.add(
                PullLogModel(
                    event_id=data["event_id"],
                    session_id=data["session_id"],
                    pack_key=data["pack_key"],
                    pack_name=data.get("pack_name", ""),
                    cost=data.get("cost", 0),
                    rarities=list(data.get("rarities", [])),
                    card_ids=list(data.get("card_ids", [])),
                    pity_triggered=bool(data.get("pity_triggered")),
                    pity_tier=data.get("pity_tier"),
                    quality01=data["quality01"],
                    satisfaction_after=data["satisfaction_after"],
                    frustration_after=data["frustration_after"],
                    satisfaction_delta=data["satisfaction_delta"],
                    frustration_delta=data["frustration_delta"],
                    cumulative_score=data["cumulative_score"],
                )
            )
            for hook in data.get("hooks", []):
                self._db.add(
                    HookLogModel(
                        session_id=data["session_id"],
                        event_id=data["event_id"],
                        hook_id=hook["hook_id"],
                        fired=hook["fired"],
                        block_reason=hook.get("block_reason"),
                        context="outcome",
                    )
                )
            self._db.commit()
            self._trim(data["session_id"])
        except SQLAlchemyError:
            self._db.rollback()
            raise

        logger.debug(
            "Logged %s → [%s] for %s",
            data["pack_key"],
            ", ".join(data.get("rarities", [])) or "(none)",
            data["session_id"],
        )

    def _trim(self, session_id: str) -> None:
        total = self._db.scalar(
            select(func.count(PullLogModel.id)).where(
                PullLogModel.session_id == session_id
            )
        )
        excess = (total or 0) - self._max_logs
        if excess <= 0:
            return

        oldest = (
            self._db.query(PullLogModel)
            .filter(PullLogModel.session_id == session_id)
            .order_by(PullLogModel.id.asc())
            .limit(excess)
            .all()
        )
        for row in oldest:
            self._db.delete(row)
        self._db.commit()
        logger.debug("Trimmed %d pull logs for %s", len(oldest), session_id)

    # === Queries ===

    def get_recent(self, session_id: str, count: int = 10) -> list[PullLogModel]:
        """Last `count` pulls for the session, oldest first."""
        count = max(1, count)
        rows = (
            self._db.query(PullLogModel)
            .filter(PullLogModel.session_id == session_id)
            .order_by(PullLogModel.id.desc())
            .limit(count)
            .all()
        )
        return list(reversed(rows))

    def get_hook_log(self, session_id: str) -> list[HookLogModel]:
        return (
            self._db.query(HookLogModel)
            .filter(HookLogModel.session_id == session_id)
            .order_by(HookLogModel.id.asc())
            .all()
        )

    def count(self, session_id: str) -> int:
        return (
            self._db.query(PullLogModel)
            .filter(PullLogModel.session_id == session_id)
            .count()
        )

    def clear_session(self, session_id: str) -> int:
        """Delete a session's pull and hook history. Returns pull rows removed."""
        removed = (
            self._db.query(PullLogModel)
            .filter(PullLogModel.session_id == session_id)
            .delete()
        )
        self._db.query(HookLogModel).filter(
            HookLogModel.session_id == session_id
        ).delete()
        self._db.commit()
        logger.info("Cleared telemetry for %s (%d pulls)", session_id, removed)
        return removed
