from __future__ import annotations

import hashlib
import secrets
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.core.config import get_settings
from livequiz.db.models.live_answers import LiveAnswer
from livequiz.db.models.live_participants import LiveParticipant
from livequiz.db.models.live_sessions import LiveSession
from livequiz.db.repo.live_participants_repo import LiveParticipantsRepo
from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.game.live.constants import (
    DISPLAY_NAME_MAX_LENGTH,
    PIN_LENGTH,
    RECONNECT_TOKEN_BYTES,
)
from livequiz.game.live.errors import (
    InvalidDisplayNameError,
    LiveGameError,
    ParticipantNotFoundError,
    ReconnectTokenInvalidError,
    SessionNotFoundError,
)
from livequiz.game.live.phases import as_utc, build_phase_state
from livequiz.game.live.types import AnswerRecord, LiveSessionSnapshot, ParticipantSnapshot
from livequiz.game.questions.types import QuestionContent


def issue_token() -> str:
    return secrets.token_urlsafe(RECONNECT_TOKEN_BYTES)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(*, token: str | None, expected_hash: str) -> bool:
    if not token or not expected_hash:
        return False
    return secrets.compare_digest(hash_token(token), expected_hash)


def normalize_display_name(display_name: str) -> str:
    normalized = " ".join(display_name.split())
    if not normalized or len(normalized) > DISPLAY_NAME_MAX_LENGTH:
        raise InvalidDisplayNameError
    return normalized


def normalize_ledger_address(ledger_address: str | None) -> str | None:
    if ledger_address is None:
        return None
    normalized = ledger_address.strip()
    return normalized or None


def resolve_time_limit_ms(question: QuestionContent) -> int:
    if question.time_limit_ms is not None and question.time_limit_ms > 0:
        return int(question.time_limit_ms)
    return max(1, int(get_settings().default_question_time_limit_ms))


async def generate_pin(session: AsyncSession) -> str:
    attempts = max(1, int(get_settings().pin_generation_attempts))
    for _ in range(attempts):
        pin = f"{secrets.randbelow(10**PIN_LENGTH):0{PIN_LENGTH}d}"
        existing = await LiveSessionsRepo.get_active_by_pin(session, pin)
        if existing is None:
            return pin
    raise LiveGameError("unable to generate session pin")


async def load_session(session: AsyncSession, session_id: UUID) -> LiveSession:
    live_session = await LiveSessionsRepo.get_by_id(session, session_id)
    if live_session is None:
        raise SessionNotFoundError
    return live_session


async def load_participant(session: AsyncSession, participant_id: int) -> LiveParticipant:
    participant = await LiveParticipantsRepo.get_by_id(session, participant_id)
    if participant is None:
        raise ParticipantNotFoundError
    return participant


def assert_host_token(live_session: LiveSession, host_token: str | None) -> None:
    if not token_matches(token=host_token, expected_hash=live_session.host_token_hash):
        raise ReconnectTokenInvalidError


def build_session_snapshot(live_session: LiveSession) -> LiveSessionSnapshot:
    return LiveSessionSnapshot(
        session_id=live_session.id,
        pin=live_session.pin,
        quiz_set_id=live_session.quiz_set_id,
        phase=build_phase_state(
            phase=live_session.phase,
            question_index=live_session.current_question_index,
            question_count=live_session.question_count,
            question_started_at=live_session.question_started_at,
            question_time_limit_ms=live_session.question_time_limit_ms,
            ended_at=live_session.ended_at,
        ),
        current_question_index=live_session.current_question_index,
        question_count=live_session.question_count,
        answers_submitted_count=live_session.answers_submitted_count,
        total_players=live_session.total_players,
        version=live_session.version,
        created_at=as_utc(live_session.created_at),
        started_at=as_utc(live_session.started_at) if live_session.started_at else None,
        ended_at=as_utc(live_session.ended_at) if live_session.ended_at else None,
        reward_claimed=live_session.reward_claimed_at is not None,
    )


def build_answer_record(answer: LiveAnswer) -> AnswerRecord:
    return AnswerRecord(
        question_index=int(answer.question_index),
        letter=answer.letter,
        is_correct=bool(answer.is_correct),
        answered_at_offset_ms=int(answer.answered_at_offset_ms),
        points_awarded=int(answer.points_awarded),
    )


def build_participant_snapshot(
    participant: LiveParticipant,
    answers: Iterable[LiveAnswer] = (),
) -> ParticipantSnapshot:
    records = sorted(
        (build_answer_record(answer) for answer in answers),
        key=lambda record: record.question_index,
    )
    return ParticipantSnapshot(
        participant_id=int(participant.id),
        session_id=participant.session_id,
        display_name=participant.display_name,
        ledger_address=participant.ledger_address,
        score=int(participant.score),
        joined_at=as_utc(participant.joined_at),
        answers=tuple(records),
    )
