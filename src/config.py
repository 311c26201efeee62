"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./ccas_telemetry.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Pack / rarity / emotion tables
    DROP_CONFIG_PATH: str = "src/data/drop_config.json"

    # Concrete cards per tier; None = rarities only
    CARD_CATALOG_PATH: Optional[str] = "src/data/cards_catalog.json"

    # None = nondeterministic; set for reproducible tuning runs
    RNG_SEED: Optional[int] = None

    # Hook pacing
    HOOK_QUIET_MIN_SECONDS: float = 6.0
    HOOK_QUIET_MAX_SECONDS: float = 8.0
    HOOK_JITTER_MAX_SECONDS: float = 0.25

    # Telemetry
    TELEMETRY_MAX_LOGS: int = 1000


settings = Settings()
