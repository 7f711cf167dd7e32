from __future__ import annotations

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from livequiz.db.models.quiz_set_questions import QuizSetQuestion
from livequiz.db.repo.quiz_sets_repo import QuizSetsRepo
from livequiz.game.questions.types import QuestionContent


class QuizContentProvider(Protocol):
    async def count_questions(self, quiz_set_id: str) -> int: ...

    async def get_question(self, quiz_set_id: str, index: int) -> QuestionContent | None: ...


def _to_content(row: QuizSetQuestion) -> QuestionContent:
    return QuestionContent(
        quiz_set_id=row.quiz_set_id,
        question_index=int(row.question_index),
        text=row.question_text,
        choices=(row.choice_a, row.choice_b, row.choice_c, row.choice_d),
        correct_letter=row.correct_letter,
        time_limit_ms=row.time_limit_ms,
    )


class DbQuizContentProvider:
    """Reads question sets from the ``quiz_sets`` tables in a short read-only session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def count_questions(self, quiz_set_id: str) -> int:
        async with self._session_factory() as session:
            quiz_set = await QuizSetsRepo.get_by_id(session, quiz_set_id)
            if quiz_set is None:
                return 0
            return await QuizSetsRepo.count_questions(session, quiz_set_id=quiz_set_id)

    async def get_question(self, quiz_set_id: str, index: int) -> QuestionContent | None:
        async with self._session_factory() as session:
            row = await QuizSetsRepo.get_question(
                session,
                quiz_set_id=quiz_set_id,
                question_index=index,
            )
            if row is None:
                return None
            return _to_content(row)
