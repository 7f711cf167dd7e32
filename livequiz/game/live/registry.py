from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.models.live_participants import LiveParticipant
from livequiz.db.repo.live_answers_repo import LiveAnswersRepo
from livequiz.db.repo.live_participants_repo import LiveParticipantsRepo
from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.game.live.constants import PHASE_LOBBY, ROLE_HOST, ROLE_PLAYER
from livequiz.game.live.errors import (
    LeaveNotAllowedError,
    ReconnectTokenInvalidError,
    SessionNotFoundError,
    SessionNotJoinableError,
)
from livequiz.game.live.internal import (
    build_participant_snapshot,
    build_session_snapshot,
    hash_token,
    issue_token,
    load_participant,
    load_session,
    normalize_display_name,
    normalize_ledger_address,
    token_matches,
)
from livequiz.game.live.leaderboard import build_leaderboard
from livequiz.game.live.types import JoinResult, LeaveResult, ReconnectResult

logger = structlog.get_logger(__name__)


async def join_session(
    session: AsyncSession,
    *,
    session_id: UUID,
    display_name: str,
    now_utc: datetime,
    ledger_address: str | None = None,
) -> JoinResult:
    live_session = await load_session(session, session_id)
    if live_session.phase != PHASE_LOBBY:
        raise SessionNotJoinableError
    normalized_name = normalize_display_name(display_name)

    # Guarded by phase = LOBBY at write time, so a join never lands after the first question.
    updated_session = await LiveSessionsRepo.apply_lobby_membership_delta(
        session,
        session_id=session_id,
        delta=1,
    )
    if updated_session is None:
        raise SessionNotJoinableError

    reconnect_token = issue_token()
    participant = await LiveParticipantsRepo.create(
        session,
        participant=LiveParticipant(
            session_id=session_id,
            display_name=normalized_name,
            ledger_address=normalize_ledger_address(ledger_address),
            score=0,
            reconnect_token_hash=hash_token(reconnect_token),
            joined_at=now_utc,
        ),
    )
    logger.info(
        "live_participant_joined",
        session_id=str(session_id),
        participant_id=participant.id,
        total_players=updated_session.total_players,
    )
    return JoinResult(
        snapshot=build_session_snapshot(updated_session),
        participant=build_participant_snapshot(participant),
        reconnect_token=reconnect_token,
    )


async def join_session_by_pin(
    session: AsyncSession,
    *,
    pin: str,
    display_name: str,
    now_utc: datetime,
    ledger_address: str | None = None,
) -> JoinResult:
    live_session = await LiveSessionsRepo.get_active_by_pin(session, pin.strip())
    if live_session is None:
        raise SessionNotFoundError
    return await join_session(
        session,
        session_id=live_session.id,
        display_name=display_name,
        now_utc=now_utc,
        ledger_address=ledger_address,
    )


async def authorize_participant(
    session: AsyncSession,
    *,
    participant_id: int,
    reconnect_token: str | None,
) -> LiveParticipant:
    participant = await load_participant(session, participant_id)
    if not token_matches(token=reconnect_token, expected_hash=participant.reconnect_token_hash):
        raise ReconnectTokenInvalidError
    return participant


async def leave_session(
    session: AsyncSession,
    *,
    participant_id: int,
    reconnect_token: str | None,
) -> LeaveResult:
    participant = await authorize_participant(
        session,
        participant_id=participant_id,
        reconnect_token=reconnect_token,
    )
    session_id = participant.session_id
    updated_session = await LiveSessionsRepo.apply_lobby_membership_delta(
        session,
        session_id=session_id,
        delta=-1,
    )
    if updated_session is None:
        raise LeaveNotAllowedError
    await LiveParticipantsRepo.delete_by_id(session, participant_id=participant_id)
    logger.info(
        "live_participant_left",
        session_id=str(session_id),
        participant_id=participant_id,
        total_players=updated_session.total_players,
    )
    return LeaveResult(
        snapshot=build_session_snapshot(updated_session),
        participant_id=participant_id,
    )


async def reconnect(session: AsyncSession, *, token: str, pin: str) -> ReconnectResult:
    """Resume a host or player by capability token; never writes."""
    token_hash = hash_token(token)
    normalized_pin = pin.strip()

    host_session = await LiveSessionsRepo.get_by_host_token_hash(session, token_hash)
    if host_session is not None:
        if host_session.pin != normalized_pin:
            raise ReconnectTokenInvalidError
        participants = await LiveParticipantsRepo.list_for_session(
            session,
            session_id=host_session.id,
        )
        answers = await LiveAnswersRepo.list_for_session(session, session_id=host_session.id)
        return ReconnectResult(
            role=ROLE_HOST,
            snapshot=build_session_snapshot(host_session),
            participant=None,
            leaderboard=build_leaderboard(participants, answers),
        )

    participant = await LiveParticipantsRepo.get_by_reconnect_token_hash(session, token_hash)
    if participant is None:
        raise ReconnectTokenInvalidError
    live_session = await LiveSessionsRepo.get_by_id(session, participant.session_id)
    if live_session is None or live_session.pin != normalized_pin:
        raise ReconnectTokenInvalidError
    answers = await LiveAnswersRepo.list_for_participant(session, participant_id=participant.id)
    return ReconnectResult(
        role=ROLE_PLAYER,
        snapshot=build_session_snapshot(live_session),
        participant=build_participant_snapshot(participant, answers),
    )
