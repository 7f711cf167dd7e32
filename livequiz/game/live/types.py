from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar
from uuid import UUID


@dataclass(frozen=True, slots=True)
class LobbyPhase:
    code: ClassVar[str] = "LOBBY"


@dataclass(frozen=True, slots=True)
class QuestionPhase:
    question_index: int
    question_started_at: datetime
    time_limit_ms: int
    code: ClassVar[str] = "QUESTION"


@dataclass(frozen=True, slots=True)
class AnswerRevealPhase:
    question_index: int
    code: ClassVar[str] = "ANSWER_REVEAL"


@dataclass(frozen=True, slots=True)
class LeaderboardPhase:
    question_index: int
    is_last_question: bool
    code: ClassVar[str] = "LEADERBOARD"


@dataclass(frozen=True, slots=True)
class FinishedPhase:
    ended_at: datetime | None
    code: ClassVar[str] = "FINISHED"


PhaseState = LobbyPhase | QuestionPhase | AnswerRevealPhase | LeaderboardPhase | FinishedPhase


@dataclass(frozen=True, slots=True)
class PhaseTarget:
    """Where a legal advance lands: the next phase code and its question index."""

    phase: str
    question_index: int


@dataclass(slots=True)
class LiveSessionSnapshot:
    session_id: UUID
    pin: str
    quiz_set_id: str
    phase: PhaseState
    current_question_index: int
    question_count: int
    answers_submitted_count: int
    total_players: int
    version: int
    created_at: datetime
    started_at: datetime | None
    ended_at: datetime | None
    reward_claimed: bool

    @property
    def phase_code(self) -> str:
        return self.phase.code


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    question_index: int
    letter: str
    is_correct: bool
    answered_at_offset_ms: int
    points_awarded: int


@dataclass(slots=True)
class ParticipantSnapshot:
    participant_id: int
    session_id: UUID
    display_name: str
    ledger_address: str | None
    score: int
    joined_at: datetime
    answers: tuple[AnswerRecord, ...] = ()


@dataclass(slots=True)
class LeaderboardEntry:
    rank: int
    participant_id: int
    display_name: str
    score: int
    correct_answers: int


@dataclass(slots=True)
class CreateSessionResult:
    snapshot: LiveSessionSnapshot
    host_token: str


@dataclass(slots=True)
class JoinResult:
    snapshot: LiveSessionSnapshot
    participant: ParticipantSnapshot
    reconnect_token: str


@dataclass(slots=True)
class ReconnectResult:
    role: str
    snapshot: LiveSessionSnapshot
    participant: ParticipantSnapshot | None = None
    leaderboard: tuple[LeaderboardEntry, ...] = ()


@dataclass(slots=True)
class AdvanceResult:
    previous_phase: str
    snapshot: LiveSessionSnapshot


@dataclass(slots=True)
class SubmitAnswerResult:
    session_id: UUID
    session_version: int
    participant_id: int
    question_index: int
    is_correct: bool
    points_awarded: int
    score: int
    answers_submitted_count: int


@dataclass(slots=True)
class LeaveResult:
    snapshot: LiveSessionSnapshot
    participant_id: int


@dataclass(slots=True)
class ClaimEligibility:
    eligible: bool
    reason: str
    participant_id: int
    session_id: UUID


@dataclass(slots=True)
class RewardClaimResult:
    session_id: UUID
    participant_id: int
    ledger_address: str
    receipt: str
    claimed_at: datetime


@dataclass(slots=True)
class UnclaimedReward:
    session_id: UUID
    pin: str
    quiz_set_id: str
    participant_id: int
    score: int
    ended_at: datetime | None
