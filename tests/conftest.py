"""Shared test fixtures."""

import random
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.drop.catalog import CardCatalog
from src.core.drop.registry import PackRegistry
from src.core.event_bus import EventBus
from src.db.database import get_db
from src.db.models import Base
from src.main import app

DROP_CONFIG_PATH = Path(__file__).resolve().parents[1] / "src" / "data" / "drop_config.json"
CARD_CATALOG_PATH = Path(__file__).resolve().parents[1] / "src" / "data" / "cards_catalog.json"

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def registry() -> PackRegistry:
    """Registry loaded from the shipped drop_config.json."""
    return PackRegistry.from_json(DROP_CONFIG_PATH)


@pytest.fixture()
def catalog() -> CardCatalog:
    """Catalog loaded from the shipped cards_catalog.json."""
    return CardCatalog.from_json(CARD_CATALOG_PATH)


@pytest.fixture()
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def db_session() -> Session:
    """Fresh in-memory schema per test."""
    Base.metadata.drop_all(TEST_ENGINE)
    Base.metadata.create_all(TEST_ENGINE)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    return TestClient(app)
