from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.core.config import get_settings
from livequiz.db.models.live_answers import LiveAnswer
from livequiz.db.repo.live_answers_repo import LiveAnswersRepo
from livequiz.db.repo.live_participants_repo import LiveParticipantsRepo
from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.game.live.constants import ANSWER_LETTERS, PHASE_QUESTION
from livequiz.game.live.errors import (
    AnswerWindowClosedError,
    DuplicateAnswerError,
    InvalidAnswerError,
    ParticipantNotFoundError,
    PhaseMismatchError,
    QuizSetNotFoundError,
)
from livequiz.game.live.internal import load_participant, load_session
from livequiz.game.live.phases import as_utc
from livequiz.game.live.types import SubmitAnswerResult
from livequiz.game.questions.provider import QuizContentProvider
from livequiz.game.scoring import score

logger = structlog.get_logger(__name__)


def _elapsed_ms(*, started_at: datetime, now_utc: datetime) -> int:
    return int((as_utc(now_utc) - as_utc(started_at)).total_seconds() * 1000)


async def submit_answer(
    session: AsyncSession,
    *,
    participant_id: int,
    question_index: int,
    letter: str,
    answered_at_offset_ms: int,
    content: QuizContentProvider,
    now_utc: datetime,
) -> SubmitAnswerResult:
    participant = await load_participant(session, participant_id)
    live_session = await load_session(session, participant.session_id)

    existing = await LiveAnswersRepo.get_for_question(
        session,
        participant_id=participant_id,
        question_index=question_index,
    )
    if existing is not None:
        raise DuplicateAnswerError

    if (
        live_session.phase != PHASE_QUESTION
        or live_session.current_question_index != question_index
    ):
        logger.info(
            "live_answer_rejected",
            session_id=str(live_session.id),
            participant_id=participant_id,
            question_index=question_index,
            phase=live_session.phase,
            reason="phase_mismatch",
        )
        raise PhaseMismatchError

    normalized_letter = letter.strip().upper()
    if normalized_letter not in ANSWER_LETTERS or answered_at_offset_ms < 0:
        raise InvalidAnswerError

    time_limit_ms = int(live_session.question_time_limit_ms or 0)
    if answered_at_offset_ms > time_limit_ms:
        logger.info(
            "live_answer_rejected",
            session_id=str(live_session.id),
            participant_id=participant_id,
            question_index=question_index,
            answered_at_offset_ms=answered_at_offset_ms,
            reason="window_closed",
        )
        raise AnswerWindowClosedError

    if live_session.question_started_at is not None:
        server_elapsed_ms = _elapsed_ms(
            started_at=live_session.question_started_at,
            now_utc=now_utc,
        )
        if server_elapsed_ms > time_limit_ms + get_settings().answer_grace_ms:
            logger.info(
                "live_answer_rejected",
                session_id=str(live_session.id),
                participant_id=participant_id,
                question_index=question_index,
                server_elapsed_ms=server_elapsed_ms,
                reason="server_window_closed",
            )
            raise AnswerWindowClosedError

    question = await content.get_question(live_session.quiz_set_id, question_index)
    if question is None:
        raise QuizSetNotFoundError
    is_correct = normalized_letter == question.correct_letter
    points = score(is_correct, answered_at_offset_ms, time_limit_ms)

    try:
        await LiveAnswersRepo.create(
            session,
            answer=LiveAnswer(
                participant_id=participant_id,
                question_index=question_index,
                session_id=live_session.id,
                letter=normalized_letter,
                is_correct=is_correct,
                answered_at_offset_ms=answered_at_offset_ms,
                points_awarded=points,
                recorded_at=now_utc,
            ),
        )
    except IntegrityError as exc:
        raise DuplicateAnswerError from exc

    # Only counts while the session is still on this question; otherwise the caller rolls back.
    submitted_count = await LiveSessionsRepo.increment_answers_submitted(
        session,
        session_id=live_session.id,
        question_index=question_index,
    )
    if submitted_count is None:
        raise PhaseMismatchError

    new_score = await LiveParticipantsRepo.apply_score_delta(
        session,
        participant_id=participant_id,
        points=points,
    )
    if new_score is None:
        raise ParticipantNotFoundError

    logger.info(
        "live_answer_accepted",
        session_id=str(live_session.id),
        participant_id=participant_id,
        question_index=question_index,
        is_correct=is_correct,
        points_awarded=points,
    )
    return SubmitAnswerResult(
        session_id=live_session.id,
        session_version=int(live_session.version),
        participant_id=participant_id,
        question_index=question_index,
        is_correct=is_correct,
        points_awarded=points,
        score=int(new_score),
        answers_submitted_count=int(submitted_count),
    )
