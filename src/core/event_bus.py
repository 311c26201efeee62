"""EventBus - synchronous pub/sub between the pull pipeline and its consumers

Rules:
- publishers never import their consumers (telemetry, hook executors)
- events carry flat data (ids, keys, numbers), never live state objects
- propagation depth is capped at MAX_DEPTH
- the same source may not emit the same event type twice in one chain
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # max propagation depth within one outcome chain


@dataclass
class GameEvent:
    """Event container

    Args:
        event_type: e.g. "pack_opened", "hook_fired"
        data: flat payload (keys and scalars only)
        source: emitting service/module name
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    # internal tracking, not set by callers
    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """Synchronous event bus

    Usage:
        bus = EventBus()
        bus.subscribe("pack_opened", telemetry.handle_pack_opened)
        with bus.chain():
            bus.emit(GameEvent(event_type="pack_opened", data={...}, source="pack_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._current_depth: int = 0
        self._emitted_in_chain: Set[str] = set()  # "source:event_type"
        self._lock = threading.RLock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)
        logger.debug(f"EventBus subscribe: {event_type} → {handler.__qualname__}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            if event_type in self._handlers:
                try:
                    self._handlers[event_type].remove(handler)
                    logger.debug(
                        f"EventBus unsubscribe: {event_type} → {handler.__qualname__}"
                    )
                except ValueError:
                    logger.warning(
                        f"Handler not registered: {event_type} → {handler.__qualname__}"
                    )

    @contextmanager
    def chain(self) -> Iterator["EventBus"]:
        """Scope one outcome chain.

        Holds the bus lock so chains from different sessions do not interleave,
        and resets duplicate tracking when the chain ends.
        """
        with self._lock:
            try:
                yield self
            finally:
                self.reset_chain()

    def emit(self, event: GameEvent) -> None:
        """Call subscribed handlers synchronously.

        Guards:
        1. events past MAX_DEPTH are dropped
        2. a repeated source:event_type within the chain is dropped
        Handler exceptions are logged and do not stop other handlers.
        """
        with self._lock:
            if self._current_depth >= MAX_DEPTH:
                logger.warning(
                    f"EventBus depth exceeded ({MAX_DEPTH}): "
                    f"{event.source}:{event.event_type} dropped"
                )
                return

            chain_key = f"{event.source}:{event.event_type}"
            if chain_key in self._emitted_in_chain:
                logger.warning(f"EventBus duplicate event blocked: {chain_key}")
                return

            self._emitted_in_chain.add(chain_key)
            event._depth = self._current_depth

            handlers = list(self._handlers.get(event.event_type, []))
            if not handlers:
                logger.debug(f"EventBus: no subscribers for {event.event_type}")
                return

            logger.debug(
                f"EventBus dispatch: {event.event_type} (source={event.source}, "
                f"depth={self._current_depth}, handlers={len(handlers)})"
            )

            self._current_depth += 1
            try:
                for handler in handlers:
                    try:
                        handler(event)
                    except Exception:
                        logger.exception(
                            f"EventBus handler error: {handler.__qualname__} "
                            f"(event={event.event_type})"
                        )
            finally:
                self._current_depth -= 1

    def reset_chain(self) -> None:
        """Called when an outcome chain ends. Clears duplicate tracking."""
        with self._lock:
            self._emitted_in_chain.clear()
            self._current_depth = 0

    def clear(self) -> None:
        """Drop every subscription (tests)."""
        with self._lock:
            self._handlers.clear()
            self.reset_chain()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
