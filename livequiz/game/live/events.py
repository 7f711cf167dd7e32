from __future__ import annotations

from typing import Any

from livequiz.game.live.constants import (
    EVENT_ANSWER_SUBMITTED,
    EVENT_PARTICIPANT_JOINED,
    EVENT_PARTICIPANT_LEFT,
    EVENT_PHASE_CHANGED,
    EVENT_REWARD_CLAIMED,
)
from livequiz.game.live.types import (
    AdvanceResult,
    JoinResult,
    LeaveResult,
    LiveSessionSnapshot,
    QuestionPhase,
    RewardClaimResult,
    SubmitAnswerResult,
)


def _base_event(event_type: str, snapshot: LiveSessionSnapshot) -> dict[str, Any]:
    return {
        "type": event_type,
        "session_id": str(snapshot.session_id),
        "version": snapshot.version,
    }


def participant_joined_event(result: JoinResult) -> dict[str, Any]:
    event = _base_event(EVENT_PARTICIPANT_JOINED, result.snapshot)
    event["participant_id"] = result.participant.participant_id
    event["display_name"] = result.participant.display_name
    event["total_players"] = result.snapshot.total_players
    return event


def participant_left_event(result: LeaveResult) -> dict[str, Any]:
    event = _base_event(EVENT_PARTICIPANT_LEFT, result.snapshot)
    event["participant_id"] = result.participant_id
    event["total_players"] = result.snapshot.total_players
    return event


def phase_changed_event(result: AdvanceResult) -> dict[str, Any]:
    snapshot = result.snapshot
    event = _base_event(EVENT_PHASE_CHANGED, snapshot)
    event["previous_phase"] = result.previous_phase
    event["phase"] = snapshot.phase_code
    event["question_index"] = snapshot.current_question_index
    if isinstance(snapshot.phase, QuestionPhase):
        event["question_started_at"] = snapshot.phase.question_started_at.isoformat()
        event["time_limit_ms"] = snapshot.phase.time_limit_ms
    return event


def answer_submitted_event(result: SubmitAnswerResult) -> dict[str, Any]:
    # Correctness stays private until the reveal; observers only see the count.
    return {
        "type": EVENT_ANSWER_SUBMITTED,
        "session_id": str(result.session_id),
        "version": result.session_version,
        "question_index": result.question_index,
        "answers_submitted_count": result.answers_submitted_count,
    }


def reward_claimed_event(
    result: RewardClaimResult,
    *,
    snapshot: LiveSessionSnapshot,
) -> dict[str, Any]:
    event = _base_event(EVENT_REWARD_CLAIMED, snapshot)
    event["participant_id"] = result.participant_id
    event["receipt"] = result.receipt
    return event
