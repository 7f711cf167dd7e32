from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from livequiz.db.models.base import Base


class QuizSetQuestion(Base):
    __tablename__ = "quiz_set_questions"
    __table_args__ = (
        CheckConstraint(
            "correct_letter IN ('A','B','C','D')",
            name="ck_quiz_set_questions_correct_letter",
        ),
        CheckConstraint(
            "question_index >= 0",
            name="ck_quiz_set_questions_index_non_negative",
        ),
        CheckConstraint(
            "time_limit_ms IS NULL OR time_limit_ms > 0",
            name="ck_quiz_set_questions_time_limit_positive",
        ),
    )

    quiz_set_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("quiz_sets.id"),
        primary_key=True,
    )
    question_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    choice_a: Mapped[str] = mapped_column(Text, nullable=False)
    choice_b: Mapped[str] = mapped_column(Text, nullable=False)
    choice_c: Mapped[str] = mapped_column(Text, nullable=False)
    choice_d: Mapped[str] = mapped_column(Text, nullable=False)
    correct_letter: Mapped[str] = mapped_column(String(1), nullable=False)
    time_limit_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
