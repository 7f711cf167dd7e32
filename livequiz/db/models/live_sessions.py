from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from livequiz.db.models.base import Base

_NOT_FINISHED = text("phase != 'FINISHED'")


class LiveSession(Base):
    __tablename__ = "live_sessions"
    __table_args__ = (
        CheckConstraint(
            "phase IN ('LOBBY','QUESTION','ANSWER_REVEAL','LEADERBOARD','FINISHED')",
            name="ck_live_sessions_phase",
        ),
        CheckConstraint("question_count >= 1", name="ck_live_sessions_question_count_positive"),
        CheckConstraint(
            "current_question_index >= -1 AND current_question_index <= question_count",
            name="ck_live_sessions_question_index_range",
        ),
        CheckConstraint(
            "phase NOT IN ('QUESTION','ANSWER_REVEAL','LEADERBOARD') OR current_question_index >= 0",
            name="ck_live_sessions_question_index_in_play",
        ),
        CheckConstraint(
            "(phase = 'FINISHED' AND current_question_index = question_count) "
            "OR (phase != 'FINISHED' AND current_question_index < question_count)",
            name="ck_live_sessions_finished_past_last_question",
        ),
        CheckConstraint(
            "answers_submitted_count >= 0",
            name="ck_live_sessions_answers_submitted_non_negative",
        ),
        CheckConstraint("total_players >= 0", name="ck_live_sessions_total_players_non_negative"),
        Index(
            "uq_live_sessions_active_pin",
            "pin",
            unique=True,
            postgresql_where=_NOT_FINISHED,
            sqlite_where=_NOT_FINISHED,
        ),
        Index("idx_live_sessions_phase_ended", "phase", "ended_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    pin: Mapped[str] = mapped_column(String(6), nullable=False)
    quiz_set_id: Mapped[str] = mapped_column(String(64), nullable=False)
    host_token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    host_ledger_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    phase: Mapped[str] = mapped_column(String(16), nullable=False)
    current_question_index: Mapped[int] = mapped_column(Integer, nullable=False)
    question_count: Mapped[int] = mapped_column(Integer, nullable=False)
    answers_submitted_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_players: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    question_time_limit_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    question_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    phase_started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reward_claimed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reward_claim_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reward_claim_receipt: Mapped[str | None] = mapped_column(String(128), nullable=True)
