"""Hook arbiter — cooldown / session cap / global quiet window gating

Check order: global quiet -> session cap -> per-hook cooldown.
A successful fire refreshes the quiet window shared by every hook, so one
hook firing silences all others for a few seconds.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional

from src.core.hooks.models import BlockReason, HookDecision, HookRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Payload = Callable[[], None]

MIN_QUIET_FLOOR = 0.5  # seconds


class HookArbiter:
    """Per-session hook pacing state."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Clock = time.monotonic,
        quiet_window: tuple[float, float] = (6.0, 8.0),
        jitter_max: float = 0.25,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self.min_quiet = max(MIN_QUIET_FLOOR, quiet_window[0])
        self.max_quiet = max(self.min_quiet, quiet_window[1])
        self.jitter_max = max(0.0, jitter_max)

        self._records: dict[str, HookRecord] = {}
        self.global_quiet_until: float = 0.0

    def _record(self, hook_id: str, cooldown: float, cap: int) -> HookRecord:
        record = self._records.get(hook_id)
        if record is None:
            record = HookRecord(hook_id=hook_id)
            self._records[hook_id] = record
        record.cooldown_seconds = cooldown
        record.session_cap = cap
        return record

    def try_fire(
        self,
        hook_id: str,
        cooldown_seconds: float,
        session_cap: int,
        payload: Optional[Payload] = None,
    ) -> HookDecision:
        now = self._clock()
        record = self._record(hook_id, cooldown_seconds, session_cap)

        reason: Optional[BlockReason] = None
        if now < self.global_quiet_until:
            reason = BlockReason.GLOBAL_QUIET
        elif record.session_fires >= session_cap:
            reason = BlockReason.SESSION_CAP
        elif now < record.cooldown_until:
            reason = BlockReason.COOLDOWN

        if reason is not None:
            logger.debug("Hook '%s' blocked: %s", hook_id, reason.value)
            return HookDecision(hook_id=hook_id, fired=False, block_reason=reason)

        if payload is not None:
            try:
                payload()
            except Exception:
                logger.exception("Hook payload error: %s", hook_id)

        jitter = self._rng.uniform(0.0, self.jitter_max) if self.jitter_max else 0.0
        record.cooldown_until = now + cooldown_seconds + jitter
        record.session_fires += 1
        self.global_quiet_until = now + self._rng.uniform(
            self.min_quiet, self.max_quiet
        )

        logger.info(
            "Fired '%s' (%d/%d) | quiet until %.2f",
            hook_id,
            record.session_fires,
            session_cap,
            self.global_quiet_until,
        )
        return HookDecision(hook_id=hook_id, fired=True)

    def reset(self) -> None:
        """Clear cooldowns, session counts and the quiet window."""
        self._records.clear()
        self.global_quiet_until = 0.0
        logger.debug("Hook state reset.")

    def record(self, hook_id: str) -> Optional[HookRecord]:
        return self._records.get(hook_id)

    @property
    def records(self) -> list[HookRecord]:
        return list(self._records.values())
