from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.models.quiz_set_questions import QuizSetQuestion
from livequiz.db.models.quiz_sets import QuizSet


class QuizSetsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, quiz_set_id: str) -> QuizSet | None:
        return await session.get(QuizSet, quiz_set_id)

    @staticmethod
    async def count_questions(session: AsyncSession, *, quiz_set_id: str) -> int:
        stmt = select(func.count(QuizSetQuestion.question_index)).where(
            QuizSetQuestion.quiz_set_id == quiz_set_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def get_question(
        session: AsyncSession,
        *,
        quiz_set_id: str,
        question_index: int,
    ) -> QuizSetQuestion | None:
        return await session.get(QuizSetQuestion, (quiz_set_id, question_index))

    @staticmethod
    async def create_with_questions(
        session: AsyncSession,
        *,
        quiz_set: QuizSet,
        questions: Sequence[QuizSetQuestion],
    ) -> QuizSet:
        session.add(quiz_set)
        session.add_all(list(questions))
        await session.flush()
        return quiz_set
