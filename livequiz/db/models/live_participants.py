from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from livequiz.db.models.base import Base

# SQLite only auto-increments an INTEGER PRIMARY KEY column.
PARTICIPANT_ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class LiveParticipant(Base):
    __tablename__ = "live_participants"
    __table_args__ = (
        CheckConstraint("score >= 0", name="ck_live_participants_score_non_negative"),
        Index("idx_live_participants_session", "session_id", "id"),
        Index("idx_live_participants_ledger_address", "ledger_address"),
    )

    id: Mapped[int] = mapped_column(PARTICIPANT_ID_TYPE, primary_key=True, autoincrement=True)
    session_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("live_sessions.id"),
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(String(32), nullable=False)
    ledger_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    reconnect_token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
