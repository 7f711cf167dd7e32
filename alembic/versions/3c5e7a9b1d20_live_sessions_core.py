"""live_sessions_core

Revision ID: 3c5e7a9b1d20
Revises:
Create Date: 2026-10-18 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "3c5e7a9b1d20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "quiz_sets",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(128), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "quiz_set_questions",
        sa.Column("quiz_set_id", sa.String(64), nullable=False),
        sa.Column("question_index", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("choice_a", sa.Text(), nullable=False),
        sa.Column("choice_b", sa.Text(), nullable=False),
        sa.Column("choice_c", sa.Text(), nullable=False),
        sa.Column("choice_d", sa.Text(), nullable=False),
        sa.Column("correct_letter", sa.String(1), nullable=False),
        sa.Column("time_limit_ms", sa.Integer(), nullable=True),
        sa.CheckConstraint("correct_letter IN ('A','B','C','D')", name="ck_quiz_set_questions_correct_letter"),
        sa.CheckConstraint("question_index >= 0", name="ck_quiz_set_questions_index_non_negative"),
        sa.CheckConstraint(
            "time_limit_ms IS NULL OR time_limit_ms > 0",
            name="ck_quiz_set_questions_time_limit_positive",
        ),
        sa.ForeignKeyConstraint(["quiz_set_id"], ["quiz_sets.id"]),
        sa.PrimaryKeyConstraint("quiz_set_id", "question_index"),
    )

    op.create_table(
        "live_sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("pin", sa.String(6), nullable=False),
        sa.Column("quiz_set_id", sa.String(64), nullable=False),
        sa.Column("host_token_hash", sa.String(64), nullable=False),
        sa.Column("host_ledger_address", sa.String(64), nullable=True),
        sa.Column("phase", sa.String(16), nullable=False),
        sa.Column("current_question_index", sa.Integer(), nullable=False),
        sa.Column("question_count", sa.Integer(), nullable=False),
        sa.Column("answers_submitted_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_players", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("question_time_limit_ms", sa.Integer(), nullable=True),
        sa.Column("question_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("phase_started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reward_claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reward_claim_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reward_claim_receipt", sa.String(128), nullable=True),
        sa.CheckConstraint(
            "phase IN ('LOBBY','QUESTION','ANSWER_REVEAL','LEADERBOARD','FINISHED')",
            name="ck_live_sessions_phase",
        ),
        sa.CheckConstraint("question_count >= 1", name="ck_live_sessions_question_count_positive"),
        sa.CheckConstraint(
            "current_question_index >= -1 AND current_question_index <= question_count",
            name="ck_live_sessions_question_index_range",
        ),
        sa.CheckConstraint(
            "phase NOT IN ('QUESTION','ANSWER_REVEAL','LEADERBOARD') OR current_question_index >= 0",
            name="ck_live_sessions_question_index_in_play",
        ),
        sa.CheckConstraint(
            "(phase = 'FINISHED' AND current_question_index = question_count) "
            "OR (phase != 'FINISHED' AND current_question_index < question_count)",
            name="ck_live_sessions_finished_past_last_question",
        ),
        sa.CheckConstraint(
            "answers_submitted_count >= 0",
            name="ck_live_sessions_answers_submitted_non_negative",
        ),
        sa.CheckConstraint("total_players >= 0", name="ck_live_sessions_total_players_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("host_token_hash", name="uq_live_sessions_host_token_hash"),
    )
    op.create_index(
        "uq_live_sessions_active_pin",
        "live_sessions",
        ["pin"],
        unique=True,
        postgresql_where=sa.text("phase != 'FINISHED'"),
    )
    op.create_index("idx_live_sessions_phase_ended", "live_sessions", ["phase", "ended_at"])

    op.create_table(
        "live_participants",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("display_name", sa.String(32), nullable=False),
        sa.Column("ledger_address", sa.String(64), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reconnect_token_hash", sa.String(64), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("score >= 0", name="ck_live_participants_score_non_negative"),
        sa.ForeignKeyConstraint(["session_id"], ["live_sessions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reconnect_token_hash", name="uq_live_participants_reconnect_token_hash"),
    )
    op.create_index("idx_live_participants_session", "live_participants", ["session_id", "id"])
    op.create_index("idx_live_participants_ledger_address", "live_participants", ["ledger_address"])

    op.create_table(
        "live_answers",
        sa.Column("participant_id", sa.BigInteger(), nullable=False),
        sa.Column("question_index", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("letter", sa.String(1), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("answered_at_offset_ms", sa.Integer(), nullable=False),
        sa.Column("points_awarded", sa.Integer(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("letter IN ('A','B','C','D')", name="ck_live_answers_letter"),
        sa.CheckConstraint("question_index >= 0", name="ck_live_answers_question_index_non_negative"),
        sa.CheckConstraint("answered_at_offset_ms >= 0", name="ck_live_answers_offset_non_negative"),
        sa.CheckConstraint("points_awarded >= 0", name="ck_live_answers_points_non_negative"),
        sa.ForeignKeyConstraint(["participant_id"], ["live_participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["session_id"], ["live_sessions.id"]),
        sa.PrimaryKeyConstraint("participant_id", "question_index"),
    )
    op.create_index("idx_live_answers_session_question", "live_answers", ["session_id", "question_index"])


def downgrade() -> None:
    op.drop_index("idx_live_answers_session_question", table_name="live_answers")
    op.drop_table("live_answers")
    op.drop_index("idx_live_participants_ledger_address", table_name="live_participants")
    op.drop_index("idx_live_participants_session", table_name="live_participants")
    op.drop_table("live_participants")
    op.drop_index("idx_live_sessions_phase_ended", table_name="live_sessions")
    op.drop_index("uq_live_sessions_active_pin", table_name="live_sessions")
    op.drop_table("live_sessions")
    op.drop_table("quiz_set_questions")
    op.drop_table("quiz_sets")
