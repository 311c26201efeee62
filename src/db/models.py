"""SQLAlchemy declarative base and telemetry ORM models."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all database models."""


class PullLogModel(Base):
    """One pack-open outcome with the post-pull emotional snapshot."""

    __tablename__ = "pull_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    session_id: Mapped[str] = mapped_column(String, index=True, nullable=False)

    pack_key: Mapped[str] = mapped_column(String, nullable=False)
    pack_name: Mapped[str] = mapped_column(String, default="")
    cost: Mapped[int] = mapped_column(Integer, default=0)

    rarities: Mapped[list] = mapped_column(JSON, default=list)
    card_ids: Mapped[list] = mapped_column(JSON, default=list)
    pity_triggered: Mapped[bool] = mapped_column(Boolean, default=False)
    pity_tier: Mapped[str | None] = mapped_column(String, nullable=True)

    quality01: Mapped[float] = mapped_column(Float, nullable=False)
    satisfaction_after: Mapped[float] = mapped_column(Float, nullable=False)
    frustration_after: Mapped[float] = mapped_column(Float, nullable=False)
    satisfaction_delta: Mapped[float] = mapped_column(Float, nullable=False)
    frustration_delta: Mapped[float] = mapped_column(Float, nullable=False)
    cumulative_score: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class HookLogModel(Base):
    """One hook evaluation, fired or blocked."""

    __tablename__ = "hook_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    event_id: Mapped[str | None] = mapped_column(String, nullable=True)
    hook_id: Mapped[str] = mapped_column(String, nullable=False)
    fired: Mapped[bool] = mapped_column(Boolean, nullable=False)
    block_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    context: Mapped[str] = mapped_column(String, default="outcome")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
