from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from livequiz.db.models.live_participants import LiveParticipant
from livequiz.db.models.live_sessions import LiveSession


class LiveParticipantsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        participant: LiveParticipant,
    ) -> LiveParticipant:
        session.add(participant)
        await session.flush()
        return participant

    @staticmethod
    async def get_by_id(session: AsyncSession, participant_id: int) -> LiveParticipant | None:
        return await session.get(LiveParticipant, participant_id, populate_existing=True)

    @staticmethod
    async def get_by_reconnect_token_hash(
        session: AsyncSession,
        token_hash: str,
    ) -> LiveParticipant | None:
        stmt = select(LiveParticipant).where(LiveParticipant.reconnect_token_hash == token_hash)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_session(
        session: AsyncSession,
        *,
        session_id: UUID,
    ) -> list[LiveParticipant]:
        stmt = (
            select(LiveParticipant)
            .where(LiveParticipant.session_id == session_id)
            .order_by(LiveParticipant.score.desc(), LiveParticipant.id.asc())
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def apply_score_delta(
        session: AsyncSession,
        *,
        participant_id: int,
        points: int,
    ) -> int | None:
        stmt = (
            update(LiveParticipant)
            .where(LiveParticipant.id == participant_id)
            .values(score=LiveParticipant.score + points)
            .returning(LiveParticipant.score)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_by_id(session: AsyncSession, *, participant_id: int) -> bool:
        stmt = (
            delete(LiveParticipant)
            .where(LiveParticipant.id == participant_id)
            .returning(LiveParticipant.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_unclaimed_wins_for_address(
        session: AsyncSession,
        *,
        ledger_address: str,
        limit: int,
    ) -> list[tuple[LiveSession, LiveParticipant]]:
        higher = aliased(LiveParticipant)
        outranked = (
            select(higher.id)
            .where(
                higher.session_id == LiveParticipant.session_id,
                or_(
                    higher.score > LiveParticipant.score,
                    and_(higher.score == LiveParticipant.score, higher.id < LiveParticipant.id),
                ),
            )
            .exists()
        )
        stmt = (
            select(LiveSession, LiveParticipant)
            .join(LiveParticipant, LiveParticipant.session_id == LiveSession.id)
            .where(
                LiveParticipant.ledger_address == ledger_address,
                LiveSession.phase == "FINISHED",
                LiveSession.reward_claimed_at.is_(None),
                ~outranked,
            )
            .order_by(LiveSession.ended_at.desc(), LiveSession.id.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return [(live_session, participant) for live_session, participant in result.all()]
