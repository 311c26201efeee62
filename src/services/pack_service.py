"""Pack Service — session controller for the draw → score → emotion → hooks chain

Owns one SessionState per session id. Consumers (telemetry, hook payload
executors) are reached only through the EventBus.
"""

import random
import threading
import time
import uuid
from functools import partial
from typing import Callable, Optional

from src.core.drop.catalog import CardCatalog
from src.core.drop.models import DropResult, PackDefinition
from src.core.drop.registry import PackRegistry
from src.core.drop.resolver import DropResolver
from src.core.drop.scoring import quality01
from src.core.emotion.engine import EmotionEngine
from src.core.emotion.models import EmotionUpdate
from src.core.errors import ConfigurationError
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.hooks.arbiter import HookArbiter
from src.core.hooks.models import HookDecision, HookSpec
from src.core.hooks.triggers import eligible_hooks
from src.core.logging import get_logger
from src.core.session import PullOutcome, SessionState

logger = get_logger(__name__)

SOURCE = "pack_service"


class PackService:
    """Pack opening + session lifecycle"""

    def __init__(
        self,
        registry: PackRegistry,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        quiet_window: tuple[float, float] = (6.0, 8.0),
        jitter_max: float = 0.25,
        emotion_engine: Optional[EmotionEngine] = None,
        catalog: Optional[CardCatalog] = None,
    ):
        self._registry = registry
        self._bus = event_bus
        self._rng = rng or random.Random()
        self._clock = clock
        self._quiet_window = quiet_window
        self._jitter_max = jitter_max
        self._engine = emotion_engine or EmotionEngine(registry.emotion_tuning)
        self._resolver = DropResolver(registry, self._rng)
        self._catalog = catalog

        self._sessions: dict[str, SessionState] = {}
        self._sessions_lock = threading.Lock()

    @property
    def registry(self) -> PackRegistry:
        return self._registry

    @property
    def catalog(self) -> Optional[CardCatalog]:
        return self._catalog

    # === Sessions ===

    def get_session(self, session_id: str) -> Optional[SessionState]:
        return self._sessions.get(session_id)

    def get_or_create_session(self, session_id: str) -> SessionState:
        with self._sessions_lock:
            session = self._sessions.get(session_id)
            if session is not None:
                return session

            # each session draws from its own generator, seeded from ours
            session_rng = random.Random(self._rng.getrandbits(64))
            session = SessionState(
                session_id=session_id,
                rng=session_rng,
                meters=self._engine.new_meters(),
                hooks=HookArbiter(
                    rng=session_rng,
                    clock=self._clock,
                    quiet_window=self._quiet_window,
                    jitter_max=self._jitter_max,
                ),
            )
            self._sessions[session_id] = session

        logger.info("Session started: %s", session_id)
        with self._bus.chain():
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.SESSION_STARTED,
                    data={"session_id": session_id},
                    source=SOURCE,
                )
            )
        return session

    def reset_session(self, session_id: str) -> SessionState:
        """Clear pity, meters and hook state. Waits for any in-flight pull."""
        session = self.get_or_create_session(session_id)
        with session.lock:
            session.pity.clear()
            self._engine.reset(session.meters)
            session.hooks.reset()
            session.pull_count = 0

        logger.info("Session reset: %s", session_id)
        with self._bus.chain():
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.SESSION_RESET,
                    data={"session_id": session_id},
                    source=SOURCE,
                )
            )
        return session

    # === Packs ===

    def list_packs(self) -> list[PackDefinition]:
        return list(self._registry.packs.values())

    def open_pack(self, session_id: str, pack_key: str) -> PullOutcome:
        """Run one full outcome chain for session_id.

        A ConfigurationError short-circuits the chain: the outcome carries
        the error and no rarities, and no session state changes.
        """
        try:
            pack = self._registry.require(pack_key)
        except ConfigurationError as e:
            logger.error("Pull rejected for session %s: %s", session_id, e)
            return PullOutcome(session_id=session_id, pack_key=pack_key, error=str(e))

        session = self.get_or_create_session(session_id)
        with session.lock:
            try:
                drop = self._resolver.resolve(pack_key, session.pity, rng=session.rng)
                quality = quality01(drop.rarities, pack, self._registry.numeric_value)
            except ConfigurationError as e:
                logger.error("Pull rejected for session %s: %s", session_id, e)
                return PullOutcome(
                    session_id=session_id, pack_key=pack_key, error=str(e)
                )

            # counters are stored only once the draw has been scored
            self._resolver.commit(drop, session.pity)
            cards = (
                self._catalog.pick_many(drop.rarities, session.rng)
                if self._catalog is not None
                else []
            )
            update = self._engine.apply(session.meters, quality, drop.rarities)
            session.pull_count += 1

            outcome = PullOutcome.from_drop(
                session_id=session_id,
                event_id=f"pull_{uuid.uuid4().hex[:24]}",
                pack_name=pack.name,
                cost=pack.cost,
                drop=drop,
                emotion=update,
                cards=cards,
            )

            with self._bus.chain():
                outcome.hooks = self._evaluate_hooks(session, outcome, drop, update)
                self._bus.emit(
                    GameEvent(
                        event_type=EventTypes.PACK_OPENED,
                        data=outcome.to_event_data(),
                        source=SOURCE,
                    )
                )

        logger.info(
            "Opened %s for %s → [%s] | pity=%s:%s | q=%.3f S=%.2f F=%.2f",
            pack_key,
            session_id,
            ", ".join(outcome.rarity_keys),
            outcome.pity_triggered,
            outcome.pity_tier.key if outcome.pity_tier else "-",
            update.quality01,
            update.satisfaction,
            update.frustration,
        )
        return outcome

    # === Hooks ===

    def _evaluate_hooks(
        self,
        session: SessionState,
        outcome: PullOutcome,
        drop: DropResult,
        update: EmotionUpdate,
    ) -> list[HookDecision]:
        specs = eligible_hooks(
            self._registry.hook_specs, drop, update, self._engine.tuning
        )
        return [
            session.hooks.try_fire(
                spec.hook_id,
                spec.cooldown_seconds,
                spec.session_cap,
                partial(self._execute_hook, spec, outcome),
            )
            for spec in specs
        ]

    def _execute_hook(self, spec: HookSpec, outcome: PullOutcome) -> None:
        """Payload for a fired hook: hand off to executors on the bus."""
        self._bus.emit(
            GameEvent(
                event_type=EventTypes.HOOK_FIRED,
                data={
                    "session_id": outcome.session_id,
                    "event_id": outcome.event_id,
                    "hook_id": spec.hook_id,
                    "trigger": spec.trigger.value,
                    "rarities": outcome.rarity_keys,
                },
                source=f"hook:{spec.hook_id}",
            )
        )
