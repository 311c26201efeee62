"""FastAPI application entrypoint."""

import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.health import router as health_router
from src.api.packs import router as packs_router
from src.config import settings
from src.core.drop.catalog import CardCatalog
from src.core.drop.registry import PackRegistry
from src.core.errors import ConfigurationError
from src.core.event_bus import EventBus
from src.core.logging import get_logger, setup_logging
from src.db.database import SessionLocal, engine as db_engine
from src.db.models import Base
from src.services.pack_service import PackService
from src.services.telemetry_service import TelemetryService

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    # Pack / rarity tables — a broken file stops startup
    logger.info("Loading drop config from %s...", settings.DROP_CONFIG_PATH)
    registry = PackRegistry.from_json(settings.DROP_CONFIG_PATH)

    # Cards are cosmetic; pulls still resolve rarities without them
    catalog = None
    if settings.CARD_CATALOG_PATH:
        try:
            catalog = CardCatalog.from_json(settings.CARD_CATALOG_PATH)
        except ConfigurationError as e:
            logger.error("Card catalog unavailable: %s", e)

    event_bus = EventBus()
    db_session = SessionLocal()

    logger.info("Initializing TelemetryService...")
    telemetry_service = TelemetryService(
        db=db_session,
        event_bus=event_bus,
        max_logs=settings.TELEMETRY_MAX_LOGS,
    )
    app.state.telemetry_service = telemetry_service

    logger.info("Initializing PackService...")
    pack_service = PackService(
        registry=registry,
        event_bus=event_bus,
        rng=random.Random(settings.RNG_SEED),
        quiet_window=(
            settings.HOOK_QUIET_MIN_SECONDS,
            settings.HOOK_QUIET_MAX_SECONDS,
        ),
        jitter_max=settings.HOOK_JITTER_MAX_SECONDS,
        catalog=catalog,
    )
    app.state.pack_service = pack_service
    app.state.event_bus = event_bus
    logger.info("PackService initialized (%d packs).", len(registry.pack_keys()))

    yield

    logger.info("Shutting down...")
    db_session.close()


app = FastAPI(title="CCAS Pack Tuning", lifespan=lifespan)

app.include_router(health_router)
app.include_router(packs_router)
