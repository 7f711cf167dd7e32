from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from livequiz.db.models.live_answers import LiveAnswer
from livequiz.db.models.live_participants import LiveParticipant
from livequiz.db.models.live_sessions import LiveSession
from livequiz.db.repo.live_answers_repo import LiveAnswersRepo
from livequiz.db.repo.live_participants_repo import LiveParticipantsRepo
from livequiz.game.live.constants import (
    ELIGIBILITY_ADDRESS_MISMATCH,
    ELIGIBILITY_ELIGIBLE,
    ELIGIBILITY_NOT_FINISHED,
    ELIGIBILITY_NOT_TOP_RANKED,
    PHASE_FINISHED,
)
from livequiz.game.live.errors import ParticipantNotFoundError
from livequiz.game.live.internal import load_session, normalize_ledger_address
from livequiz.game.live.types import ClaimEligibility, LeaderboardEntry


def rank(participants: Iterable[LiveParticipant]) -> list[LiveParticipant]:
    """Score descending; equal scores keep join order (lower id first)."""
    return sorted(
        participants,
        key=lambda participant: (-int(participant.score), int(participant.id)),
    )


def build_leaderboard(
    participants: Iterable[LiveParticipant],
    answers: Iterable[LiveAnswer] = (),
) -> tuple[LeaderboardEntry, ...]:
    correct_by_participant = Counter(
        int(answer.participant_id) for answer in answers if answer.is_correct
    )
    return tuple(
        LeaderboardEntry(
            rank=position,
            participant_id=int(participant.id),
            display_name=participant.display_name,
            score=int(participant.score),
            correct_answers=correct_by_participant.get(int(participant.id), 0),
        )
        for position, participant in enumerate(rank(participants), start=1)
    )


def claim_eligibility_reason(
    *,
    live_session: LiveSession,
    participant: LiveParticipant,
    ranked: Sequence[LiveParticipant],
    presented_address: str | None,
) -> str:
    if live_session.phase != PHASE_FINISHED:
        return ELIGIBILITY_NOT_FINISHED
    if not ranked or int(ranked[0].id) != int(participant.id):
        return ELIGIBILITY_NOT_TOP_RANKED
    bound_address = normalize_ledger_address(participant.ledger_address)
    presented = normalize_ledger_address(presented_address)
    if bound_address is None or presented is None or bound_address != presented:
        return ELIGIBILITY_ADDRESS_MISMATCH
    return ELIGIBILITY_ELIGIBLE


def is_eligible_to_claim(
    *,
    live_session: LiveSession,
    participant: LiveParticipant,
    ranked: Sequence[LiveParticipant],
    presented_address: str | None,
) -> bool:
    reason = claim_eligibility_reason(
        live_session=live_session,
        participant=participant,
        ranked=ranked,
        presented_address=presented_address,
    )
    return reason == ELIGIBILITY_ELIGIBLE


async def get_leaderboard(
    session: AsyncSession,
    *,
    session_id: UUID,
) -> tuple[LeaderboardEntry, ...]:
    await load_session(session, session_id)
    participants = await LiveParticipantsRepo.list_for_session(session, session_id=session_id)
    answers = await LiveAnswersRepo.list_for_session(session, session_id=session_id)
    return build_leaderboard(participants, answers)


async def check_claim_eligibility(
    session: AsyncSession,
    *,
    session_id: UUID,
    participant_id: int,
    ledger_address: str | None,
) -> ClaimEligibility:
    live_session = await load_session(session, session_id)
    participants = await LiveParticipantsRepo.list_for_session(session, session_id=session_id)
    ranked = rank(participants)
    participant = next(
        (candidate for candidate in ranked if int(candidate.id) == participant_id),
        None,
    )
    if participant is None:
        raise ParticipantNotFoundError
    reason = claim_eligibility_reason(
        live_session=live_session,
        participant=participant,
        ranked=ranked,
        presented_address=ledger_address,
    )
    return ClaimEligibility(
        eligible=reason == ELIGIBILITY_ELIGIBLE,
        reason=reason,
        participant_id=participant_id,
        session_id=session_id,
    )
