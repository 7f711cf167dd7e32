from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from livequiz.db.models.base import Base
from livequiz.db.models.live_participants import PARTICIPANT_ID_TYPE


class LiveAnswer(Base):
    __tablename__ = "live_answers"
    __table_args__ = (
        CheckConstraint("letter IN ('A','B','C','D')", name="ck_live_answers_letter"),
        CheckConstraint("question_index >= 0", name="ck_live_answers_question_index_non_negative"),
        CheckConstraint(
            "answered_at_offset_ms >= 0",
            name="ck_live_answers_offset_non_negative",
        ),
        CheckConstraint("points_awarded >= 0", name="ck_live_answers_points_non_negative"),
        Index("idx_live_answers_session_question", "session_id", "question_index"),
    )

    participant_id: Mapped[int] = mapped_column(
        PARTICIPANT_ID_TYPE,
        ForeignKey("live_participants.id", ondelete="CASCADE"),
        primary_key=True,
    )
    question_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("live_sessions.id"),
        nullable=False,
    )
    letter: Mapped[str] = mapped_column(String(1), nullable=False)
    is_correct: Mapped[bool] = mapped_column(nullable=False)
    answered_at_offset_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
