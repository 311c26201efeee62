"""PackService integration tests (EventBus + fake clock, no DB)"""

import random
import threading

import pytest

from src.core.drop.models import PackDefinition, PityRules
from src.core.drop.registry import PackRegistry
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.hooks.models import BlockReason, HookSpec, HookTrigger
from src.core.rarity import Rarity
from src.services.pack_service import PackService

PAST_QUIET = 8.01


def _pity_registry() -> PackRegistry:
    """Single-card all-common pack with a rare guarantee after 2 misses."""
    pack = PackDefinition(
        key="commons",
        name="Commons",
        pull_count=1,
        drop_rates={Rarity.COMMON: 100.0},
        score_min=1,
        score_max=3,
        pity=PityRules(rare_after=2),
    )
    hooks = (
        HookSpec("pity_comfort", 30.0, 3, HookTrigger.PITY),
        HookSpec("outcome_streak", 5.0, 5, HookTrigger.OUTCOME),
    )
    return PackRegistry(packs={"commons": pack}, hook_specs=hooks)


@pytest.fixture()
def recorder(event_bus):
    events: list[GameEvent] = []
    for event_type in (
        EventTypes.PACK_OPENED,
        EventTypes.SESSION_STARTED,
        EventTypes.SESSION_RESET,
        EventTypes.HOOK_FIRED,
    ):
        event_bus.subscribe(event_type, events.append)
    return events


@pytest.fixture()
def service(registry, event_bus, clock):
    return PackService(registry, event_bus, rng=random.Random(42), clock=clock)


def _of_type(events, event_type):
    return [e for e in events if e.event_type == event_type]


class TestOpenPack:
    def test_open_returns_full_outcome(self, service):
        outcome = service.open_pack("s1", "starter_trio")
        assert outcome.ok
        assert outcome.event_id.startswith("pull_")
        assert outcome.pack_name == "Starter Trio"
        assert outcome.cost == 50
        assert len(outcome.rarities) == 3
        assert 0.0 <= outcome.emotion.quality01 <= 1.0
        assert service.get_session("s1").pull_count == 1

    def test_pack_opened_event_is_flat(self, service, recorder):
        outcome = service.open_pack("s1", "bronze_pack")
        opened = _of_type(recorder, EventTypes.PACK_OPENED)
        assert len(opened) == 1
        data = opened[0].data
        assert data["event_id"] == outcome.event_id
        assert data["rarities"] == outcome.rarity_keys
        assert data["satisfaction_after"] == outcome.emotion.satisfaction
        assert all(isinstance(h, dict) for h in data["hooks"])

    def test_session_started_once(self, service, recorder):
        service.open_pack("s1", "bronze_pack")
        service.open_pack("s1", "bronze_pack")
        assert len(_of_type(recorder, EventTypes.SESSION_STARTED)) == 1
        assert len(_of_type(recorder, EventTypes.PACK_OPENED)) == 2

    def test_meters_advance_across_pulls(self, service):
        service.open_pack("s1", "silver_pack")
        service.open_pack("s1", "silver_pack")
        session = service.get_session("s1")
        assert session.meters.pulls == 2
        assert len(session.meters.window) == 2


class TestFailClosed:
    def test_unknown_pack_returns_error(self, service):
        outcome = service.open_pack("s1", "mystery_pack")
        assert not outcome.ok
        assert "mystery_pack" in outcome.error
        assert outcome.rarities == []
        assert outcome.emotion is None

    def test_unknown_pack_mutates_nothing(self, service, recorder):
        service.open_pack("s1", "bronze_pack")
        session = service.get_session("s1")
        before = session.to_dict()
        recorder.clear()

        service.open_pack("s1", "mystery_pack")
        assert session.to_dict() == before
        assert recorder == []

    def test_unknown_pack_creates_no_session(self, service):
        service.open_pack("fresh", "mystery_pack")
        assert service.get_session("fresh") is None

    def test_unscorable_draw_leaves_pity_untouched(self, event_bus, clock, recorder):
        """A tier missing from the table fails the pull before counters move."""
        registry = _pity_registry()
        del registry._rarities[Rarity.COMMON]
        service = PackService(registry, event_bus, rng=random.Random(1), clock=clock)

        outcome = service.open_pack("s1", "commons")
        assert not outcome.ok
        assert "common" in outcome.error
        session = service.get_session("s1")
        assert session.pity == {}
        assert session.pull_count == 0
        assert len(session.meters.window) == 0
        assert _of_type(recorder, EventTypes.PACK_OPENED) == []


class TestCards:
    def test_one_card_per_slot_matching_rarity(self, registry, event_bus, clock, catalog):
        service = PackService(
            registry, event_bus, rng=random.Random(42), clock=clock, catalog=catalog
        )
        outcome = service.open_pack("s1", "silver_pack")
        assert len(outcome.cards) == len(outcome.rarities)
        assert [c.tier for c in outcome.cards] == outcome.rarities
        assert outcome.card_ids == [c.uid for c in outcome.cards]

    def test_card_ids_in_event(self, registry, event_bus, clock, catalog, recorder):
        service = PackService(
            registry, event_bus, rng=random.Random(42), clock=clock, catalog=catalog
        )
        outcome = service.open_pack("s1", "bronze_pack")
        data = _of_type(recorder, EventTypes.PACK_OPENED)[0].data
        assert data["card_ids"] == outcome.card_ids
        assert all(data["card_ids"])

    def test_no_catalog_no_cards(self, service):
        outcome = service.open_pack("s1", "bronze_pack")
        assert outcome.ok
        assert outcome.cards == []


class TestPity:
    def test_guarantee_flows_through_outcome(self, event_bus, clock):
        service = PackService(_pity_registry(), event_bus, rng=random.Random(1), clock=clock)
        first = service.open_pack("s1", "commons")
        second = service.open_pack("s1", "commons")
        third = service.open_pack("s1", "commons")
        assert first.rarities == [Rarity.COMMON]
        assert second.rarities == [Rarity.COMMON]
        assert third.rarities == [Rarity.RARE]
        assert third.pity_triggered is True
        assert third.pity_tier == Rarity.RARE
        assert service.get_session("s1").pity["commons"].since_rare == 0

    def test_sessions_do_not_share_pity(self, event_bus, clock):
        service = PackService(_pity_registry(), event_bus, rng=random.Random(1), clock=clock)
        service.open_pack("a", "commons")
        service.open_pack("a", "commons")
        assert service.open_pack("b", "commons").rarities == [Rarity.COMMON]
        assert service.get_session("b").pity["commons"].since_rare == 1


class TestHooks:
    def test_one_fire_per_chain(self, service):
        outcome = service.open_pack("s1", "gold_pack")
        fired = [d for d in outcome.hooks if d.fired]
        blocked = [d for d in outcome.hooks if not d.fired]
        assert len(fired) == 1
        assert all(d.block_reason == BlockReason.GLOBAL_QUIET for d in blocked)

    def test_quiet_window_blocks_next_pull(self, service, clock):
        service.open_pack("s1", "bronze_pack")
        clock.advance(1.0)
        outcome = service.open_pack("s1", "bronze_pack")
        assert outcome.hooks
        assert not any(d.fired for d in outcome.hooks)

    def test_pity_hook_takes_precedence(self, event_bus, clock):
        service = PackService(_pity_registry(), event_bus, rng=random.Random(1), clock=clock)
        service.open_pack("s1", "commons")
        clock.advance(PAST_QUIET)
        service.open_pack("s1", "commons")
        clock.advance(PAST_QUIET)
        outcome = service.open_pack("s1", "commons")
        assert [(d.hook_id, d.fired) for d in outcome.hooks] == [
            ("pity_comfort", True),
            ("outcome_streak", False),
        ]

    def test_hook_fired_payload(self, service, recorder):
        outcome = service.open_pack("s1", "bronze_pack")
        fired = _of_type(recorder, EventTypes.HOOK_FIRED)
        assert len(fired) == 1
        event = fired[0]
        assert event.data["event_id"] == outcome.event_id
        assert event.data["session_id"] == "s1"
        assert event.source == f"hook:{event.data['hook_id']}"

    def test_sessions_have_independent_quiet_windows(self, service):
        a = service.open_pack("a", "bronze_pack")
        b = service.open_pack("b", "bronze_pack")
        assert any(d.fired for d in a.hooks)
        assert any(d.fired for d in b.hooks)


class TestReset:
    def test_reset_clears_session(self, service, recorder):
        for _ in range(3):
            service.open_pack("s1", "bronze_pack")
        session = service.reset_session("s1")
        assert session.pull_count == 0
        assert session.pity == {}
        assert session.meters.snapshot() == (0.0, 0.0)
        assert len(session.meters.window) == 0
        assert session.hooks.records == []
        assert session.hooks.global_quiet_until == 0.0
        assert len(_of_type(recorder, EventTypes.SESSION_RESET)) == 1

    def test_hook_fires_again_after_reset(self, service):
        service.open_pack("s1", "bronze_pack")
        service.reset_session("s1")
        outcome = service.open_pack("s1", "bronze_pack")
        assert any(d.fired for d in outcome.hooks)

    def test_reset_unknown_session_creates_it(self, service):
        session = service.reset_session("new")
        assert session.session_id == "new"
        assert service.get_session("new") is session


class TestDeterminism:
    def test_same_seed_same_outcomes(self, registry, clock):
        def run():
            service = PackService(
                registry, EventBus(), rng=random.Random(7), clock=clock
            )
            return [
                (service.open_pack("s1", "silver_pack").rarity_keys,
                 service.open_pack("s2", "gold_pack").rarity_keys)
                for _ in range(10)
            ]

        assert run() == run()


class TestConcurrency:
    def test_parallel_pulls_same_session(self, service):
        def worker():
            for _ in range(25):
                assert service.open_pack("shared", "bronze_pack").ok

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        session = service.get_session("shared")
        assert session.pull_count == 100
        assert session.meters.pulls == 100
        assert 0.0 <= session.meters.satisfaction <= 100.0
