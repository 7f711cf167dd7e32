from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class QuestionDraftRequest(BaseModel):
    text: str = Field(min_length=1, max_length=1024)
    choices: list[str] = Field(min_length=4, max_length=4)
    correct_letter: str = Field(pattern="^[A-D]$")
    time_limit_ms: int | None = Field(default=None, gt=0)


class QuizSetCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=128)
    created_by: str | None = Field(default=None, max_length=64)
    questions: list[QuestionDraftRequest] = Field(min_length=1)


class QuizSetCreateResponse(BaseModel):
    quiz_set_id: str


class SessionCreateRequest(BaseModel):
    quiz_set_id: str = Field(min_length=1, max_length=64)
    host_ledger_address: str | None = Field(default=None, max_length=64)


class SessionResponse(BaseModel):
    session_id: UUID
    pin: str
    quiz_set_id: str
    phase: str
    current_question_index: int
    question_count: int
    answers_submitted_count: int = Field(ge=0)
    total_players: int = Field(ge=0)
    version: int
    question_started_at: datetime | None = None
    time_limit_ms: int | None = None
    is_last_question: bool | None = None
    created_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    reward_claimed: bool


class SessionCreateResponse(BaseModel):
    session: SessionResponse
    host_token: str


class JoinRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=64)
    ledger_address: str | None = Field(default=None, max_length=64)


class JoinByPinRequest(JoinRequest):
    pin: str = Field(min_length=1, max_length=16)


class AnswerRecordResponse(BaseModel):
    question_index: int
    letter: str
    is_correct: bool
    answered_at_offset_ms: int
    points_awarded: int


class ParticipantResponse(BaseModel):
    participant_id: int
    session_id: UUID
    display_name: str
    ledger_address: str | None = None
    score: int = Field(ge=0)
    joined_at: datetime
    answers: list[AnswerRecordResponse] = Field(default_factory=list)


class JoinResponse(BaseModel):
    session: SessionResponse
    participant: ParticipantResponse
    reconnect_token: str


class LeaveResponse(BaseModel):
    session: SessionResponse
    participant_id: int


class ReconnectRequest(BaseModel):
    token: str = Field(min_length=1, max_length=256)
    pin: str = Field(min_length=1, max_length=16)


class LeaderboardEntryResponse(BaseModel):
    rank: int = Field(ge=1)
    participant_id: int
    display_name: str
    score: int = Field(ge=0)
    correct_answers: int = Field(ge=0)


class ReconnectResponse(BaseModel):
    role: str
    session: SessionResponse
    participant: ParticipantResponse | None = None
    leaderboard: list[LeaderboardEntryResponse] = Field(default_factory=list)


class AdvanceRequest(BaseModel):
    expected_version: int | None = Field(default=None, ge=1)
    target_phase: str | None = Field(default=None, max_length=16)


class AdvanceResponse(BaseModel):
    previous_phase: str
    session: SessionResponse


class AnswerRequest(BaseModel):
    question_index: int = Field(ge=0)
    letter: str = Field(min_length=1, max_length=1)
    answered_at_offset_ms: int


class AnswerResponse(BaseModel):
    participant_id: int
    question_index: int
    is_correct: bool
    points_awarded: int = Field(ge=0)
    score: int = Field(ge=0)
    answers_submitted_count: int = Field(ge=0)


class LeaderboardResponse(BaseModel):
    session_id: UUID
    entries: list[LeaderboardEntryResponse]


class EligibilityResponse(BaseModel):
    session_id: UUID
    participant_id: int
    eligible: bool
    reason: str


class RewardClaimRequest(BaseModel):
    ledger_address: str = Field(min_length=1, max_length=64)


class RewardClaimResponse(BaseModel):
    session_id: UUID
    participant_id: int
    ledger_address: str
    receipt: str
    claimed_at: datetime


class UnclaimedRewardResponse(BaseModel):
    session_id: UUID
    pin: str
    quiz_set_id: str
    participant_id: int
    score: int = Field(ge=0)
    ended_at: datetime | None = None


class UnclaimedRewardsResponse(BaseModel):
    ledger_address: str
    rewards: list[UnclaimedRewardResponse]
