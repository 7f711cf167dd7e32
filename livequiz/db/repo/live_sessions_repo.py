from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.models.live_sessions import LiveSession


class LiveSessionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, live_session: LiveSession) -> LiveSession:
        session.add(live_session)
        await session.flush()
        return live_session

    @staticmethod
    async def get_by_id(session: AsyncSession, session_id: UUID) -> LiveSession | None:
        return await session.get(LiveSession, session_id, populate_existing=True)

    @staticmethod
    async def get_active_by_pin(session: AsyncSession, pin: str) -> LiveSession | None:
        stmt = select(LiveSession).where(
            LiveSession.pin == pin,
            LiveSession.phase != "FINISHED",
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_host_token_hash(session: AsyncSession, token_hash: str) -> LiveSession | None:
        stmt = select(LiveSession).where(LiveSession.host_token_hash == token_hash)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def conditional_update(
        session: AsyncSession,
        *,
        session_id: UUID,
        expected_version: int,
        values: dict[str, Any],
    ) -> LiveSession | None:
        stmt = (
            update(LiveSession)
            .where(
                LiveSession.id == session_id,
                LiveSession.version == expected_version,
            )
            .values(**values, version=expected_version + 1)
            .returning(LiveSession.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.scalar_one_or_none() is None:
            return None
        return await LiveSessionsRepo.get_by_id(session, session_id)

    @staticmethod
    async def apply_lobby_membership_delta(
        session: AsyncSession,
        *,
        session_id: UUID,
        delta: int,
    ) -> LiveSession | None:
        stmt = (
            update(LiveSession)
            .where(
                LiveSession.id == session_id,
                LiveSession.phase == "LOBBY",
                LiveSession.total_players + delta >= 0,
            )
            .values(
                total_players=LiveSession.total_players + delta,
                version=LiveSession.version + 1,
            )
            .returning(LiveSession.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.scalar_one_or_none() is None:
            return None
        return await LiveSessionsRepo.get_by_id(session, session_id)

    @staticmethod
    async def increment_answers_submitted(
        session: AsyncSession,
        *,
        session_id: UUID,
        question_index: int,
    ) -> int | None:
        stmt = (
            update(LiveSession)
            .where(
                LiveSession.id == session_id,
                LiveSession.phase == "QUESTION",
                LiveSession.current_question_index == question_index,
            )
            .values(answers_submitted_count=LiveSession.answers_submitted_count + 1)
            .returning(LiveSession.answers_submitted_count)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_reward_claim_if_missing(
        session: AsyncSession,
        *,
        session_id: UUID,
        receipt: str,
        claimed_at: datetime,
    ) -> bool:
        stmt = (
            update(LiveSession)
            .where(
                LiveSession.id == session_id,
                LiveSession.phase == "FINISHED",
                LiveSession.reward_claimed_at.is_(None),
            )
            .values(reward_claimed_at=claimed_at, reward_claim_receipt=receipt)
            .returning(LiveSession.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def reserve_reward_claim(
        session: AsyncSession,
        *,
        session_id: UUID,
        started_at: datetime,
        stale_before: datetime,
    ) -> bool:
        stmt = (
            update(LiveSession)
            .where(
                LiveSession.id == session_id,
                LiveSession.phase == "FINISHED",
                LiveSession.reward_claimed_at.is_(None),
                or_(
                    LiveSession.reward_claim_started_at.is_(None),
                    LiveSession.reward_claim_started_at < stale_before,
                ),
            )
            .values(reward_claim_started_at=started_at)
            .returning(LiveSession.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def release_reward_claim(
        session: AsyncSession,
        *,
        session_id: UUID,
        started_at: datetime,
    ) -> bool:
        stmt = (
            update(LiveSession)
            .where(
                LiveSession.id == session_id,
                LiveSession.reward_claimed_at.is_(None),
                LiveSession.reward_claim_started_at == started_at,
            )
            .values(reward_claim_started_at=None)
            .returning(LiveSession.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
