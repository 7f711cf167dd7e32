from __future__ import annotations

from collections.abc import Iterable

from fastapi import HTTPException

from livequiz.game.live.errors import (
    AnswerWindowClosedError,
    DuplicateAnswerError,
    InvalidAnswerError,
    InvalidDisplayNameError,
    InvalidTransitionError,
    LeaveNotAllowedError,
    LiveGameError,
    ParticipantNotFoundError,
    PhaseMismatchError,
    QuizSetNotFoundError,
    ReconnectTokenInvalidError,
    RewardAlreadyClaimedError,
    RewardClaimInProgressError,
    RewardClaimRejectedError,
    RewardNotEligibleError,
    SessionNotFoundError,
    SessionNotJoinableError,
    StaleStateError,
)
from livequiz.game.live.types import (
    LeaderboardEntry,
    LeaderboardPhase,
    LiveSessionSnapshot,
    ParticipantSnapshot,
    QuestionPhase,
)

from .live_sessions_models import (
    AnswerRecordResponse,
    LeaderboardEntryResponse,
    ParticipantResponse,
    SessionResponse,
)

LIVE_ERROR_STATUS: tuple[tuple[type[LiveGameError], int, str], ...] = (
    (SessionNotFoundError, 404, "E_SESSION_NOT_FOUND"),
    (ParticipantNotFoundError, 404, "E_PARTICIPANT_NOT_FOUND"),
    (QuizSetNotFoundError, 404, "E_QUIZ_SET_NOT_FOUND"),
    (StaleStateError, 409, "E_STALE_STATE"),
    (DuplicateAnswerError, 409, "E_DUPLICATE_ANSWER"),
    (RewardClaimInProgressError, 409, "E_REWARD_CLAIM_IN_PROGRESS"),
    (RewardAlreadyClaimedError, 409, "E_REWARD_ALREADY_CLAIMED"),
    (SessionNotJoinableError, 409, "E_SESSION_NOT_JOINABLE"),
    (InvalidTransitionError, 409, "E_INVALID_TRANSITION"),
    (PhaseMismatchError, 409, "E_PHASE_MISMATCH"),
    (LeaveNotAllowedError, 409, "E_LEAVE_NOT_ALLOWED"),
    (ReconnectTokenInvalidError, 403, "E_TOKEN_INVALID"),
    (RewardNotEligibleError, 403, "E_REWARD_NOT_ELIGIBLE"),
    (InvalidAnswerError, 422, "E_INVALID_ANSWER"),
    (InvalidDisplayNameError, 422, "E_INVALID_DISPLAY_NAME"),
    (AnswerWindowClosedError, 410, "E_ANSWER_WINDOW_CLOSED"),
    (RewardClaimRejectedError, 502, "E_REWARD_CLAIM_REJECTED"),
)


def _to_http_exception(exc: LiveGameError) -> HTTPException:
    for error_type, status_code, code in LIVE_ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail={"code": code})
    return HTTPException(status_code=503, detail={"code": "E_LIVE_UNAVAILABLE"})


def _session_response(snapshot: LiveSessionSnapshot) -> SessionResponse:
    phase = snapshot.phase
    return SessionResponse(
        session_id=snapshot.session_id,
        pin=snapshot.pin,
        quiz_set_id=snapshot.quiz_set_id,
        phase=snapshot.phase_code,
        current_question_index=snapshot.current_question_index,
        question_count=snapshot.question_count,
        answers_submitted_count=snapshot.answers_submitted_count,
        total_players=snapshot.total_players,
        version=snapshot.version,
        question_started_at=(
            phase.question_started_at if isinstance(phase, QuestionPhase) else None
        ),
        time_limit_ms=phase.time_limit_ms if isinstance(phase, QuestionPhase) else None,
        is_last_question=(
            phase.is_last_question if isinstance(phase, LeaderboardPhase) else None
        ),
        created_at=snapshot.created_at,
        started_at=snapshot.started_at,
        ended_at=snapshot.ended_at,
        reward_claimed=snapshot.reward_claimed,
    )


def _participant_response(participant: ParticipantSnapshot) -> ParticipantResponse:
    return ParticipantResponse(
        participant_id=participant.participant_id,
        session_id=participant.session_id,
        display_name=participant.display_name,
        ledger_address=participant.ledger_address,
        score=participant.score,
        joined_at=participant.joined_at,
        answers=[
            AnswerRecordResponse(
                question_index=record.question_index,
                letter=record.letter,
                is_correct=record.is_correct,
                answered_at_offset_ms=record.answered_at_offset_ms,
                points_awarded=record.points_awarded,
            )
            for record in participant.answers
        ],
    )


def _leaderboard_entries(
    entries: Iterable[LeaderboardEntry],
) -> list[LeaderboardEntryResponse]:
    return [
        LeaderboardEntryResponse(
            rank=entry.rank,
            participant_id=entry.participant_id,
            display_name=entry.display_name,
            score=entry.score,
            correct_answers=entry.correct_answers,
        )
        for entry in entries
    ]
