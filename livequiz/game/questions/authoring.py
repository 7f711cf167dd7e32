from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.models.quiz_set_questions import QuizSetQuestion
from livequiz.db.models.quiz_sets import QuizSet
from livequiz.db.repo.quiz_sets_repo import QuizSetsRepo
from livequiz.game.live.constants import ANSWER_LETTERS
from livequiz.game.questions.types import QuestionDraft


def _validate_draft(draft: QuestionDraft) -> None:
    if not draft.text.strip():
        raise ValueError("question text is empty")
    if len(draft.choices) != len(ANSWER_LETTERS):
        raise ValueError("a question needs exactly four choices")
    if draft.correct_letter not in ANSWER_LETTERS:
        raise ValueError(f"invalid correct letter: {draft.correct_letter!r}")
    if draft.time_limit_ms is not None and draft.time_limit_ms <= 0:
        raise ValueError("time limit must be positive")


async def create_quiz_set(
    session: AsyncSession,
    *,
    title: str,
    questions: Sequence[QuestionDraft],
    now_utc: datetime,
    created_by: str | None = None,
    quiz_set_id: str | None = None,
) -> str:
    if not questions:
        raise ValueError("a quiz set needs at least one question")
    for draft in questions:
        _validate_draft(draft)

    resolved_id = quiz_set_id or uuid4().hex
    await QuizSetsRepo.create_with_questions(
        session,
        quiz_set=QuizSet(
            id=resolved_id,
            title=title.strip()[:128],
            created_by=created_by,
            created_at=now_utc,
        ),
        questions=[
            QuizSetQuestion(
                quiz_set_id=resolved_id,
                question_index=index,
                question_text=draft.text,
                choice_a=draft.choices[0],
                choice_b=draft.choices[1],
                choice_c=draft.choices[2],
                choice_d=draft.choices[3],
                correct_letter=draft.correct_letter,
                time_limit_ms=draft.time_limit_ms,
            )
            for index, draft in enumerate(questions)
        ],
    )
    return resolved_id
