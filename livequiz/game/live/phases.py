"""Pure phase transition rules for a live session.

LOBBY -> QUESTION(0) -> ANSWER_REVEAL(i) -> LEADERBOARD(i) -> QUESTION(i+1) ... -> FINISHED.
Only the host advances; there is exactly one legal successor for every phase
except FINISHED, which has none.
"""

from __future__ import annotations

from datetime import datetime, timezone

from livequiz.game.live.constants import (
    IN_PLAY_PHASES,
    PHASE_ANSWER_REVEAL,
    PHASE_FINISHED,
    PHASE_LEADERBOARD,
    PHASE_LOBBY,
    PHASE_QUESTION,
)
from livequiz.game.live.errors import InvalidTransitionError
from livequiz.game.live.types import (
    AnswerRevealPhase,
    FinishedPhase,
    LeaderboardPhase,
    LobbyPhase,
    PhaseState,
    PhaseTarget,
    QuestionPhase,
)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_next_phase(*, phase: str, question_index: int, question_count: int) -> PhaseTarget:
    if phase == PHASE_LOBBY:
        if question_count < 1:
            raise InvalidTransitionError("quiz has no questions")
        return PhaseTarget(phase=PHASE_QUESTION, question_index=0)
    if phase in IN_PLAY_PHASES and not 0 <= question_index < question_count:
        raise InvalidTransitionError(f"question index {question_index} out of range")
    if phase == PHASE_QUESTION:
        return PhaseTarget(phase=PHASE_ANSWER_REVEAL, question_index=question_index)
    if phase == PHASE_ANSWER_REVEAL:
        return PhaseTarget(phase=PHASE_LEADERBOARD, question_index=question_index)
    if phase == PHASE_LEADERBOARD:
        if question_index + 1 < question_count:
            return PhaseTarget(phase=PHASE_QUESTION, question_index=question_index + 1)
        return PhaseTarget(phase=PHASE_FINISHED, question_index=question_count)
    raise InvalidTransitionError(f"no transition out of {phase}")


def validate_requested_phase(*, target: PhaseTarget, requested_phase: str | None) -> None:
    if requested_phase is None:
        return
    if requested_phase.strip().upper() != target.phase:
        raise InvalidTransitionError(
            f"requested {requested_phase}, next legal phase is {target.phase}"
        )


def build_phase_state(
    *,
    phase: str,
    question_index: int,
    question_count: int,
    question_started_at: datetime | None,
    question_time_limit_ms: int | None,
    ended_at: datetime | None,
) -> PhaseState:
    if phase == PHASE_LOBBY:
        return LobbyPhase()
    if phase == PHASE_QUESTION:
        if question_started_at is None or question_time_limit_ms is None:
            raise ValueError("question phase requires a start time and a time limit")
        return QuestionPhase(
            question_index=question_index,
            question_started_at=as_utc(question_started_at),
            time_limit_ms=question_time_limit_ms,
        )
    if phase == PHASE_ANSWER_REVEAL:
        return AnswerRevealPhase(question_index=question_index)
    if phase == PHASE_LEADERBOARD:
        return LeaderboardPhase(
            question_index=question_index,
            is_last_question=question_index + 1 >= question_count,
        )
    if phase == PHASE_FINISHED:
        return FinishedPhase(ended_at=as_utc(ended_at) if ended_at is not None else None)
    raise ValueError(f"unknown phase: {phase}")
