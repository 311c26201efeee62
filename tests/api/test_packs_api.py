"""Pack API integration tests

TestClient + in-memory SQLite + fake clock.
"""

import random
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.packs import router as packs_router
from src.core.drop.catalog import CardCatalog
from src.core.drop.registry import PackRegistry
from src.core.event_bus import EventBus
from src.db.models import Base
from src.services.pack_service import PackService
from src.services.telemetry_service import TelemetryService

DATA_DIR = Path(__file__).resolve().parents[2] / "src" / "data"
DROP_CONFIG_PATH = DATA_DIR / "drop_config.json"
CARD_CATALOG_PATH = DATA_DIR / "cards_catalog.json"


@pytest.fixture()
def client(clock):
    """Standalone app with the packs router and fresh services"""
    db_engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(db_engine)
    db = sessionmaker(bind=db_engine)()

    bus = EventBus()
    registry = PackRegistry.from_json(DROP_CONFIG_PATH)
    telemetry = TelemetryService(db, bus)
    catalog = CardCatalog.from_json(CARD_CATALOG_PATH)
    service = PackService(
        registry, bus, rng=random.Random(42), clock=clock, catalog=catalog
    )

    app = FastAPI()
    app.include_router(packs_router)
    app.state.pack_service = service
    app.state.telemetry_service = telemetry

    yield TestClient(app)

    db.close()
    db_engine.dispose()


class TestPackCatalogue:
    def test_list_packs(self, client):
        resp = client.get("/packs")
        assert resp.status_code == 200
        packs = {p["key"]: p for p in resp.json()}
        assert set(packs) == {"starter_trio", "bronze_pack", "silver_pack", "gold_pack"}
        gold = packs["gold_pack"]
        assert gold["modifiers"] == ["floor_at_rare"]
        assert gold["pity"]["legendary_after"] == 50
        assert gold["drop_rates"]["legendary"] == pytest.approx(3.0)


class TestOpenPack:
    def test_open_success(self, client):
        resp = client.post("/sessions/s1/open", json={"pack_key": "starter_trio"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["session_id"] == "s1"
        assert len(data["rarities"]) == 3
        assert 0.0 <= data["emotion"]["quality01"] <= 1.0
        assert sum(h["fired"] for h in data["hooks"]) == 1

    def test_open_returns_cards(self, client):
        data = client.post("/sessions/s1/open", json={"pack_key": "silver_pack"}).json()
        assert [c["tier"] for c in data["cards"]] == data["rarities"]
        assert all(c["uid"] and c["name"] for c in data["cards"])

    def test_open_unknown_pack_404(self, client):
        resp = client.post("/sessions/s1/open", json={"pack_key": "nope"})
        assert resp.status_code == 404
        assert "nope" in resp.json()["detail"]

    def test_open_missing_body_422(self, client):
        resp = client.post("/sessions/s1/open", json={})
        assert resp.status_code == 422

    def test_second_pull_blocked_by_quiet(self, client):
        client.post("/sessions/s1/open", json={"pack_key": "bronze_pack"})
        data = client.post("/sessions/s1/open", json={"pack_key": "bronze_pack"}).json()
        assert all(h["block_reason"] == "global_quiet" for h in data["hooks"])


class TestSessionState:
    def test_unknown_session_404(self, client):
        assert client.get("/sessions/ghost").status_code == 404

    def test_state_after_pulls(self, client):
        for _ in range(2):
            client.post("/sessions/s1/open", json={"pack_key": "silver_pack"})
        data = client.get("/sessions/s1").json()
        assert data["pull_count"] == 2
        assert len(data["window"]) == 2
        assert "silver_pack" in data["pity"]
        assert data["global_quiet_until"] > 0

    def test_reset(self, client):
        client.post("/sessions/s1/open", json={"pack_key": "silver_pack"})
        resp = client.post("/sessions/s1/reset")
        assert resp.status_code == 200
        data = resp.json()
        assert data["pull_count"] == 0
        assert data["pity"] == {}
        assert data["hooks"] == []
        assert data["satisfaction"] == 0.0


class TestHistory:
    def test_history_oldest_first(self, client):
        ids = [
            client.post("/sessions/s1/open", json={"pack_key": "bronze_pack"}).json()["event_id"]
            for _ in range(3)
        ]
        data = client.get("/sessions/s1/history", params={"count": 2}).json()
        assert data["session_id"] == "s1"
        assert [p["event_id"] for p in data["pulls"]] == ids[-2:]

    def test_history_empty(self, client):
        data = client.get("/sessions/none/history").json()
        assert data["pulls"] == []

    def test_history_count_validated(self, client):
        assert client.get("/sessions/s1/history", params={"count": 0}).status_code == 422

    def test_history_carries_card_ids(self, client):
        pulled = client.post("/sessions/s1/open", json={"pack_key": "bronze_pack"}).json()
        pull = client.get("/sessions/s1/history").json()["pulls"][0]
        assert pull["card_ids"] == [c["uid"] for c in pulled["cards"]]

    def test_clear_history(self, client):
        for _ in range(2):
            client.post("/sessions/s1/open", json={"pack_key": "bronze_pack"})
        client.post("/sessions/s2/open", json={"pack_key": "bronze_pack"})

        resp = client.delete("/sessions/s1/history")
        assert resp.status_code == 200
        assert resp.json() == {"session_id": "s1", "removed": 2}
        assert client.get("/sessions/s1/history").json()["pulls"] == []
        assert len(client.get("/sessions/s2/history").json()["pulls"]) == 1
        # live session state is untouched
        assert client.get("/sessions/s1").json()["pull_count"] == 2
