from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from livequiz.db.session import SessionLocal
from livequiz.game.live.errors import LiveGameError
from livequiz.game.live.service_facade import LiveGameService
from livequiz.game.questions.provider import DbQuizContentProvider
from livequiz.game.questions.types import QuestionDraft
from livequiz.services.broadcast import build_broadcast_channel
from livequiz.services.reward_vault import build_reward_vault

from .live_sessions_helpers import (
    _leaderboard_entries,
    _participant_response,
    _session_response,
    _to_http_exception,
)
from .live_sessions_models import (
    AdvanceRequest,
    AdvanceResponse,
    AnswerRequest,
    AnswerResponse,
    EligibilityResponse,
    JoinByPinRequest,
    JoinRequest,
    JoinResponse,
    LeaderboardResponse,
    LeaveResponse,
    QuizSetCreateRequest,
    QuizSetCreateResponse,
    ReconnectRequest,
    ReconnectResponse,
    RewardClaimRequest,
    RewardClaimResponse,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionResponse,
    UnclaimedRewardResponse,
    UnclaimedRewardsResponse,
)

router = APIRouter(prefix="/live", tags=["live"])

HOST_TOKEN_HEADER = "X-Host-Token"
PARTICIPANT_TOKEN_HEADER = "X-Participant-Token"


@lru_cache(maxsize=1)
def get_live_game_service() -> LiveGameService:
    return LiveGameService(
        session_factory=SessionLocal,
        broadcaster=build_broadcast_channel(),
        content=DbQuizContentProvider(SessionLocal),
        vault=build_reward_vault(),
    )


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@router.post("/quiz-sets", status_code=status.HTTP_201_CREATED)
async def create_quiz_set(
    payload: QuizSetCreateRequest,
    service: LiveGameService = Depends(get_live_game_service),
) -> QuizSetCreateResponse:
    drafts = [
        QuestionDraft(
            text=question.text,
            choices=(
                question.choices[0],
                question.choices[1],
                question.choices[2],
                question.choices[3],
            ),
            correct_letter=question.correct_letter,
            time_limit_ms=question.time_limit_ms,
        )
        for question in payload.questions
    ]
    try:
        quiz_set_id = await service.create_quiz_set(
            title=payload.title,
            questions=drafts,
            now_utc=_now_utc(),
            created_by=payload.created_by,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_QUIZ_SET_INVALID"}) from exc
    return QuizSetCreateResponse(quiz_set_id=quiz_set_id)


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreateRequest,
    service: LiveGameService = Depends(get_live_game_service),
) -> SessionCreateResponse:
    try:
        result = await service.create_session(
            quiz_set_id=payload.quiz_set_id,
            now_utc=_now_utc(),
            host_ledger_address=payload.host_ledger_address,
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return SessionCreateResponse(
        session=_session_response(result.snapshot),
        host_token=result.host_token,
    )


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: UUID,
    service: LiveGameService = Depends(get_live_game_service),
) -> SessionResponse:
    try:
        snapshot = await service.get_session(session_id=session_id)
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return _session_response(snapshot)


@router.post("/sessions/{session_id}/participants", status_code=status.HTTP_201_CREATED)
async def join_session(
    session_id: UUID,
    payload: JoinRequest,
    service: LiveGameService = Depends(get_live_game_service),
) -> JoinResponse:
    try:
        result = await service.join(
            session_id=session_id,
            display_name=payload.display_name,
            now_utc=_now_utc(),
            ledger_address=payload.ledger_address,
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return JoinResponse(
        session=_session_response(result.snapshot),
        participant=_participant_response(result.participant),
        reconnect_token=result.reconnect_token,
    )


@router.post("/join", status_code=status.HTTP_201_CREATED)
async def join_session_by_pin(
    payload: JoinByPinRequest,
    service: LiveGameService = Depends(get_live_game_service),
) -> JoinResponse:
    try:
        result = await service.join_by_pin(
            pin=payload.pin,
            display_name=payload.display_name,
            now_utc=_now_utc(),
            ledger_address=payload.ledger_address,
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return JoinResponse(
        session=_session_response(result.snapshot),
        participant=_participant_response(result.participant),
        reconnect_token=result.reconnect_token,
    )


@router.delete("/participants/{participant_id}")
async def leave_session(
    participant_id: int,
    participant_token: str | None = Header(default=None, alias=PARTICIPANT_TOKEN_HEADER),
    service: LiveGameService = Depends(get_live_game_service),
) -> LeaveResponse:
    try:
        result = await service.leave(
            participant_id=participant_id,
            reconnect_token=participant_token,
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return LeaveResponse(
        session=_session_response(result.snapshot),
        participant_id=result.participant_id,
    )


@router.post("/reconnect")
async def reconnect(
    payload: ReconnectRequest,
    service: LiveGameService = Depends(get_live_game_service),
) -> ReconnectResponse:
    try:
        result = await service.reconnect(token=payload.token, pin=payload.pin)
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return ReconnectResponse(
        role=result.role,
        session=_session_response(result.snapshot),
        participant=(
            _participant_response(result.participant)
            if result.participant is not None
            else None
        ),
        leaderboard=_leaderboard_entries(result.leaderboard),
    )


@router.post("/sessions/{session_id}/advance")
async def advance_phase(
    session_id: UUID,
    payload: AdvanceRequest,
    host_token: str | None = Header(default=None, alias=HOST_TOKEN_HEADER),
    service: LiveGameService = Depends(get_live_game_service),
) -> AdvanceResponse:
    try:
        result = await service.advance_phase(
            session_id=session_id,
            host_token=host_token,
            now_utc=_now_utc(),
            expected_version=payload.expected_version,
            target_phase=payload.target_phase,
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return AdvanceResponse(
        previous_phase=result.previous_phase,
        session=_session_response(result.snapshot),
    )


@router.post("/participants/{participant_id}/answers", status_code=status.HTTP_201_CREATED)
async def submit_answer(
    participant_id: int,
    payload: AnswerRequest,
    participant_token: str | None = Header(default=None, alias=PARTICIPANT_TOKEN_HEADER),
    service: LiveGameService = Depends(get_live_game_service),
) -> AnswerResponse:
    try:
        result = await service.submit_answer(
            participant_id=participant_id,
            reconnect_token=participant_token,
            question_index=payload.question_index,
            letter=payload.letter,
            answered_at_offset_ms=payload.answered_at_offset_ms,
            now_utc=_now_utc(),
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return AnswerResponse(
        participant_id=result.participant_id,
        question_index=result.question_index,
        is_correct=result.is_correct,
        points_awarded=result.points_awarded,
        score=result.score,
        answers_submitted_count=result.answers_submitted_count,
    )


@router.get("/sessions/{session_id}/leaderboard")
async def get_leaderboard(
    session_id: UUID,
    service: LiveGameService = Depends(get_live_game_service),
) -> LeaderboardResponse:
    try:
        entries = await service.get_leaderboard(session_id=session_id)
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return LeaderboardResponse(session_id=session_id, entries=_leaderboard_entries(entries))


@router.get("/sessions/{session_id}/participants/{participant_id}/eligibility")
async def check_claim_eligibility(
    session_id: UUID,
    participant_id: int,
    ledger_address: str | None = Query(default=None, max_length=64),
    service: LiveGameService = Depends(get_live_game_service),
) -> EligibilityResponse:
    try:
        eligibility = await service.check_claim_eligibility(
            session_id=session_id,
            participant_id=participant_id,
            ledger_address=ledger_address,
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return EligibilityResponse(
        session_id=eligibility.session_id,
        participant_id=eligibility.participant_id,
        eligible=eligibility.eligible,
        reason=eligibility.reason,
    )


@router.post("/sessions/{session_id}/participants/{participant_id}/claim")
async def claim_reward(
    session_id: UUID,
    participant_id: int,
    payload: RewardClaimRequest,
    participant_token: str | None = Header(default=None, alias=PARTICIPANT_TOKEN_HEADER),
    service: LiveGameService = Depends(get_live_game_service),
) -> RewardClaimResponse:
    try:
        result = await service.claim_reward(
            session_id=session_id,
            participant_id=participant_id,
            reconnect_token=participant_token,
            ledger_address=payload.ledger_address,
            now_utc=_now_utc(),
        )
    except LiveGameError as exc:
        raise _to_http_exception(exc) from exc
    return RewardClaimResponse(
        session_id=result.session_id,
        participant_id=result.participant_id,
        ledger_address=result.ledger_address,
        receipt=result.receipt,
        claimed_at=result.claimed_at,
    )


@router.get("/rewards/unclaimed")
async def list_unclaimed_rewards(
    ledger_address: str = Query(min_length=1, max_length=64),
    service: LiveGameService = Depends(get_live_game_service),
) -> UnclaimedRewardsResponse:
    rewards = await service.list_unclaimed_rewards(ledger_address=ledger_address)
    return UnclaimedRewardsResponse(
        ledger_address=ledger_address,
        rewards=[
            UnclaimedRewardResponse(
                session_id=reward.session_id,
                pin=reward.pin,
                quiz_set_id=reward.quiz_set_id,
                participant_id=reward.participant_id,
                score=reward.score,
                ended_at=reward.ended_at,
            )
            for reward in rewards
        ],
    )
