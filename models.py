from __future__ import annotations

from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


def _now() -> datetime:
    return datetime.now(UTC)


class Score(Base):
    """Best score of one player for one operation/mode pair."""

    __tablename__ = "scores"
    __table_args__ = (
        sa.UniqueConstraint("username", "operation", "mode", name="uq_scores_player_game"),
        sa.Index("ix_scores_operation_mode_score", "operation", "mode", "score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64))
    operation: Mapped[str] = mapped_column(String(32))
    mode: Mapped[str] = mapped_column(String(16))
    score: Mapped[int] = mapped_column(Integer)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )


class Player(Base):
    __tablename__ = "players"
    username: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    last_login_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
