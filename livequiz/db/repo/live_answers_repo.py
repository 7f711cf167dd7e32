from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.models.live_answers import LiveAnswer


class LiveAnswersRepo:
    @staticmethod
    async def get_for_question(
        session: AsyncSession,
        *,
        participant_id: int,
        question_index: int,
    ) -> LiveAnswer | None:
        return await session.get(LiveAnswer, (participant_id, question_index))

    @staticmethod
    async def create(session: AsyncSession, *, answer: LiveAnswer) -> LiveAnswer:
        session.add(answer)
        await session.flush()
        return answer

    @staticmethod
    async def list_for_session(
        session: AsyncSession,
        *,
        session_id: UUID,
    ) -> list[LiveAnswer]:
        stmt = (
            select(LiveAnswer)
            .where(LiveAnswer.session_id == session_id)
            .order_by(LiveAnswer.participant_id.asc(), LiveAnswer.question_index.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_participant(
        session: AsyncSession,
        *,
        participant_id: int,
    ) -> list[LiveAnswer]:
        stmt = (
            select(LiveAnswer)
            .where(LiveAnswer.participant_id == participant_id)
            .order_by(LiveAnswer.question_index.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
