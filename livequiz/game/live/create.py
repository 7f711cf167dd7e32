from __future__ import annotations

from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.models.live_sessions import LiveSession
from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.game.live.constants import PHASE_LOBBY, QUESTION_INDEX_UNSET
from livequiz.game.live.errors import QuizSetNotFoundError
from livequiz.game.live.internal import (
    build_session_snapshot,
    generate_pin,
    hash_token,
    issue_token,
    normalize_ledger_address,
)
from livequiz.game.live.types import CreateSessionResult
from livequiz.game.questions.provider import QuizContentProvider

logger = structlog.get_logger(__name__)


async def create_session(
    session: AsyncSession,
    *,
    quiz_set_id: str,
    content: QuizContentProvider,
    now_utc: datetime,
    host_ledger_address: str | None = None,
) -> CreateSessionResult:
    question_count = await content.count_questions(quiz_set_id)
    if question_count < 1:
        raise QuizSetNotFoundError

    host_token = issue_token()
    pin = await generate_pin(session)
    live_session = await LiveSessionsRepo.create(
        session,
        live_session=LiveSession(
            id=uuid4(),
            pin=pin,
            quiz_set_id=quiz_set_id,
            host_token_hash=hash_token(host_token),
            host_ledger_address=normalize_ledger_address(host_ledger_address),
            phase=PHASE_LOBBY,
            current_question_index=QUESTION_INDEX_UNSET,
            question_count=question_count,
            answers_submitted_count=0,
            total_players=0,
            version=1,
            question_time_limit_ms=None,
            question_started_at=None,
            phase_started_at=now_utc,
            created_at=now_utc,
            started_at=None,
            ended_at=None,
            reward_claimed_at=None,
            reward_claim_receipt=None,
        ),
    )
    logger.info(
        "live_session_created",
        session_id=str(live_session.id),
        quiz_set_id=quiz_set_id,
        question_count=question_count,
    )
    return CreateSessionResult(
        snapshot=build_session_snapshot(live_session),
        host_token=host_token,
    )
