from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from livequiz.game.live import events
from livequiz.game.live.constants import session_topic
from livequiz.game.live.service import (
    advance_phase,
    authorize_participant,
    check_claim_eligibility,
    claim_reward,
    create_session,
    get_leaderboard,
    get_session_snapshot,
    join_session,
    join_session_by_pin,
    leave_session,
    list_unclaimed_rewards,
    reconnect,
    submit_answer,
)
from livequiz.game.live.types import (
    AdvanceResult,
    ClaimEligibility,
    CreateSessionResult,
    JoinResult,
    LeaderboardEntry,
    LeaveResult,
    LiveSessionSnapshot,
    ReconnectResult,
    RewardClaimResult,
    SubmitAnswerResult,
    UnclaimedReward,
)
from livequiz.game.questions.authoring import create_quiz_set
from livequiz.game.questions.provider import QuizContentProvider
from livequiz.game.questions.types import QuestionDraft
from livequiz.services.broadcast import BroadcastChannel
from livequiz.services.reward_vault import RewardVault

logger = structlog.get_logger(__name__)


class LiveGameService:
    """Caller surface for live sessions.

    Each mutation runs in its own transaction. Broadcast events are published
    only after that transaction has committed, so observers never see a state
    that was rolled back.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        broadcaster: BroadcastChannel,
        content: QuizContentProvider,
        vault: RewardVault,
    ) -> None:
        self._session_factory = session_factory
        self._broadcaster = broadcaster
        self._content = content
        self._vault = vault

    async def _publish(self, session_id: UUID, event: dict[str, Any]) -> None:
        try:
            await self._broadcaster.publish(session_topic(session_id), event)
        except Exception:
            logger.exception(
                "live_broadcast_failed",
                session_id=str(session_id),
                event_type=event.get("type"),
            )

    async def create_quiz_set(
        self,
        *,
        title: str,
        questions: Sequence[QuestionDraft],
        now_utc: datetime,
        created_by: str | None = None,
    ) -> str:
        async with self._session_factory.begin() as session:
            return await create_quiz_set(
                session,
                title=title,
                questions=questions,
                now_utc=now_utc,
                created_by=created_by,
            )

    async def create_session(
        self,
        *,
        quiz_set_id: str,
        now_utc: datetime,
        host_ledger_address: str | None = None,
    ) -> CreateSessionResult:
        async with self._session_factory.begin() as session:
            return await create_session(
                session,
                quiz_set_id=quiz_set_id,
                content=self._content,
                now_utc=now_utc,
                host_ledger_address=host_ledger_address,
            )

    async def get_session(self, *, session_id: UUID) -> LiveSessionSnapshot:
        async with self._session_factory() as session:
            return await get_session_snapshot(session, session_id=session_id)

    async def join(
        self,
        *,
        session_id: UUID,
        display_name: str,
        now_utc: datetime,
        ledger_address: str | None = None,
    ) -> JoinResult:
        async with self._session_factory.begin() as session:
            result = await join_session(
                session,
                session_id=session_id,
                display_name=display_name,
                now_utc=now_utc,
                ledger_address=ledger_address,
            )
        await self._publish(result.snapshot.session_id, events.participant_joined_event(result))
        return result

    async def join_by_pin(
        self,
        *,
        pin: str,
        display_name: str,
        now_utc: datetime,
        ledger_address: str | None = None,
    ) -> JoinResult:
        async with self._session_factory.begin() as session:
            result = await join_session_by_pin(
                session,
                pin=pin,
                display_name=display_name,
                now_utc=now_utc,
                ledger_address=ledger_address,
            )
        await self._publish(result.snapshot.session_id, events.participant_joined_event(result))
        return result

    async def leave(self, *, participant_id: int, reconnect_token: str | None) -> LeaveResult:
        async with self._session_factory.begin() as session:
            result = await leave_session(
                session,
                participant_id=participant_id,
                reconnect_token=reconnect_token,
            )
        await self._publish(result.snapshot.session_id, events.participant_left_event(result))
        return result

    async def reconnect(self, *, token: str, pin: str) -> ReconnectResult:
        async with self._session_factory() as session:
            return await reconnect(session, token=token, pin=pin)

    async def advance_phase(
        self,
        *,
        session_id: UUID,
        host_token: str | None,
        now_utc: datetime,
        expected_version: int | None = None,
        target_phase: str | None = None,
    ) -> AdvanceResult:
        async with self._session_factory.begin() as session:
            result = await advance_phase(
                session,
                session_id=session_id,
                host_token=host_token,
                content=self._content,
                now_utc=now_utc,
                expected_version=expected_version,
                target_phase=target_phase,
            )
        await self._publish(session_id, events.phase_changed_event(result))
        return result

    async def submit_answer(
        self,
        *,
        participant_id: int,
        reconnect_token: str | None,
        question_index: int,
        letter: str,
        answered_at_offset_ms: int,
        now_utc: datetime,
    ) -> SubmitAnswerResult:
        async with self._session_factory.begin() as session:
            await authorize_participant(
                session,
                participant_id=participant_id,
                reconnect_token=reconnect_token,
            )
            result = await submit_answer(
                session,
                participant_id=participant_id,
                question_index=question_index,
                letter=letter,
                answered_at_offset_ms=answered_at_offset_ms,
                content=self._content,
                now_utc=now_utc,
            )
        await self._publish(result.session_id, events.answer_submitted_event(result))
        return result

    async def get_leaderboard(self, *, session_id: UUID) -> tuple[LeaderboardEntry, ...]:
        async with self._session_factory() as session:
            return await get_leaderboard(session, session_id=session_id)

    async def check_claim_eligibility(
        self,
        *,
        session_id: UUID,
        participant_id: int,
        ledger_address: str | None,
    ) -> ClaimEligibility:
        async with self._session_factory() as session:
            return await check_claim_eligibility(
                session,
                session_id=session_id,
                participant_id=participant_id,
                ledger_address=ledger_address,
            )

    async def claim_reward(
        self,
        *,
        session_id: UUID,
        participant_id: int,
        reconnect_token: str | None,
        ledger_address: str | None,
        now_utc: datetime,
    ) -> RewardClaimResult:
        async with self._session_factory() as session:
            await authorize_participant(
                session,
                participant_id=participant_id,
                reconnect_token=reconnect_token,
            )
        result = await claim_reward(
            self._session_factory,
            vault=self._vault,
            session_id=session_id,
            participant_id=participant_id,
            ledger_address=ledger_address,
            now_utc=now_utc,
        )
        snapshot = await self.get_session(session_id=session_id)
        await self._publish(session_id, events.reward_claimed_event(result, snapshot=snapshot))
        return result

    async def list_unclaimed_rewards(self, *, ledger_address: str) -> list[UnclaimedReward]:
        async with self._session_factory() as session:
            return await list_unclaimed_rewards(session, ledger_address=ledger_address)
