from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.game.live.constants import PHASE_FINISHED, PHASE_LOBBY, PHASE_QUESTION
from livequiz.game.live.errors import QuizSetNotFoundError, StaleStateError
from livequiz.game.live.internal import (
    assert_host_token,
    build_session_snapshot,
    load_session,
    resolve_time_limit_ms,
)
from livequiz.game.live.phases import resolve_next_phase, validate_requested_phase
from livequiz.game.live.types import AdvanceResult, LiveSessionSnapshot
from livequiz.game.questions.provider import QuizContentProvider

logger = structlog.get_logger(__name__)


async def advance_phase(
    session: AsyncSession,
    *,
    session_id: UUID,
    host_token: str | None,
    content: QuizContentProvider,
    now_utc: datetime,
    expected_version: int | None = None,
    target_phase: str | None = None,
) -> AdvanceResult:
    live_session = await load_session(session, session_id)
    assert_host_token(live_session, host_token)

    observed_version = live_session.version if expected_version is None else expected_version
    if observed_version != live_session.version:
        logger.info(
            "live_phase_advance_stale",
            session_id=str(session_id),
            expected_version=observed_version,
            current_version=live_session.version,
        )
        raise StaleStateError

    previous_phase = live_session.phase
    target = resolve_next_phase(
        phase=live_session.phase,
        question_index=live_session.current_question_index,
        question_count=live_session.question_count,
    )
    validate_requested_phase(target=target, requested_phase=target_phase)

    values: dict[str, Any] = {
        "phase": target.phase,
        "current_question_index": target.question_index,
        "phase_started_at": now_utc,
    }
    if target.phase == PHASE_QUESTION:
        question = await content.get_question(live_session.quiz_set_id, target.question_index)
        if question is None:
            raise QuizSetNotFoundError
        values["answers_submitted_count"] = 0
        values["question_started_at"] = now_utc
        values["question_time_limit_ms"] = resolve_time_limit_ms(question)
        if previous_phase == PHASE_LOBBY:
            values["started_at"] = now_utc
    elif target.phase == PHASE_FINISHED:
        values["ended_at"] = now_utc

    updated = await LiveSessionsRepo.conditional_update(
        session,
        session_id=session_id,
        expected_version=observed_version,
        values=values,
    )
    if updated is None:
        logger.info(
            "live_phase_advance_stale",
            session_id=str(session_id),
            expected_version=observed_version,
        )
        raise StaleStateError

    logger.info(
        "live_phase_advanced",
        session_id=str(session_id),
        from_phase=previous_phase,
        to_phase=updated.phase,
        question_index=updated.current_question_index,
        version=updated.version,
    )
    return AdvanceResult(
        previous_phase=previous_phase,
        snapshot=build_session_snapshot(updated),
    )


async def get_session_snapshot(session: AsyncSession, *, session_id: UUID) -> LiveSessionSnapshot:
    return build_session_snapshot(await load_session(session, session_id))
