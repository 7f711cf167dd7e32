from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from livequiz.core.config import get_settings
from livequiz.db.repo.live_participants_repo import LiveParticipantsRepo
from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.game.live.constants import ELIGIBILITY_ELIGIBLE, UNCLAIMED_REWARDS_LIMIT
from livequiz.game.live.errors import (
    RewardAlreadyClaimedError,
    RewardClaimInProgressError,
    RewardClaimRejectedError,
    RewardNotEligibleError,
)
from livequiz.game.live.internal import load_session, normalize_ledger_address
from livequiz.game.live.leaderboard import check_claim_eligibility
from livequiz.game.live.phases import as_utc
from livequiz.game.live.types import RewardClaimResult, UnclaimedReward
from livequiz.services.reward_vault import (
    RewardVault,
    RewardVaultError,
    reward_claim_idempotency_key,
)

logger = structlog.get_logger(__name__)


async def assert_reward_claimable(
    session: AsyncSession,
    *,
    session_id: UUID,
    participant_id: int,
    ledger_address: str | None,
) -> str:
    live_session = await load_session(session, session_id)
    if live_session.reward_claimed_at is not None:
        raise RewardAlreadyClaimedError
    eligibility = await check_claim_eligibility(
        session,
        session_id=session_id,
        participant_id=participant_id,
        ledger_address=ledger_address,
    )
    if eligibility.reason != ELIGIBILITY_ELIGIBLE:
        logger.info(
            "live_reward_claim_not_eligible",
            session_id=str(session_id),
            participant_id=participant_id,
            reason=eligibility.reason,
        )
        raise RewardNotEligibleError(eligibility.reason)
    normalized_address = normalize_ledger_address(ledger_address)
    if normalized_address is None:
        raise RewardNotEligibleError(eligibility.reason)
    return normalized_address


async def record_reward_claim(
    session: AsyncSession,
    *,
    session_id: UUID,
    participant_id: int,
    ledger_address: str,
    receipt: str,
    now_utc: datetime,
) -> RewardClaimResult:
    recorded = await LiveSessionsRepo.set_reward_claim_if_missing(
        session,
        session_id=session_id,
        receipt=receipt,
        claimed_at=now_utc,
    )
    if not recorded:
        raise RewardAlreadyClaimedError
    return RewardClaimResult(
        session_id=session_id,
        participant_id=participant_id,
        ledger_address=ledger_address,
        receipt=receipt,
        claimed_at=now_utc,
    )


async def reserve_reward_claim(
    session: AsyncSession,
    *,
    session_id: UUID,
    now_utc: datetime,
) -> None:
    reservation_seconds = max(1, int(get_settings().reward_claim_reservation_seconds))
    reserved = await LiveSessionsRepo.reserve_reward_claim(
        session,
        session_id=session_id,
        started_at=now_utc,
        stale_before=now_utc - timedelta(seconds=reservation_seconds),
    )
    if not reserved:
        logger.info("live_reward_claim_in_progress", session_id=str(session_id))
        raise RewardClaimInProgressError


async def claim_reward(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    vault: RewardVault,
    session_id: UUID,
    participant_id: int,
    ledger_address: str | None,
    now_utc: datetime,
) -> RewardClaimResult:
    """Check eligibility, reserve the claim, ask the vault to pay, then record the receipt.

    The reservation commits before the vault is called, so a concurrent claim for
    the same session fails fast instead of reaching the vault. No database
    connection is held while the vault works. A refused or failed vault call
    releases the reservation; a reservation left behind by a crashed claim expires
    after ``reward_claim_reservation_seconds``. The vault sees the same
    idempotency key on every attempt for a session, so a retry after an unknown
    outcome cannot pay twice.
    """
    async with session_factory.begin() as session:
        claim_address = await assert_reward_claimable(
            session,
            session_id=session_id,
            participant_id=participant_id,
            ledger_address=ledger_address,
        )
        await reserve_reward_claim(session, session_id=session_id, now_utc=now_utc)

    try:
        vault_receipt = await vault.claim(
            session_id=session_id,
            ledger_address=claim_address,
            idempotency_key=reward_claim_idempotency_key(session_id),
        )
    except RewardVaultError as exc:
        async with session_factory.begin() as session:
            await LiveSessionsRepo.release_reward_claim(
                session,
                session_id=session_id,
                started_at=now_utc,
            )
        logger.warning(
            "live_reward_claim_rejected",
            session_id=str(session_id),
            participant_id=participant_id,
            error=str(exc),
        )
        raise RewardClaimRejectedError(str(exc)) from exc

    async with session_factory.begin() as session:
        result = await record_reward_claim(
            session,
            session_id=session_id,
            participant_id=participant_id,
            ledger_address=claim_address,
            receipt=vault_receipt.receipt,
            now_utc=now_utc,
        )

    logger.info(
        "live_reward_claimed",
        session_id=str(session_id),
        participant_id=participant_id,
    )
    return result


async def list_unclaimed_rewards(
    session: AsyncSession,
    *,
    ledger_address: str,
) -> list[UnclaimedReward]:
    normalized_address = normalize_ledger_address(ledger_address)
    if normalized_address is None:
        return []

    wins = await LiveParticipantsRepo.list_unclaimed_wins_for_address(
        session,
        ledger_address=normalized_address,
        limit=UNCLAIMED_REWARDS_LIMIT,
    )
    return [
        UnclaimedReward(
            session_id=live_session.id,
            pin=live_session.pin,
            quiz_set_id=live_session.quiz_set_id,
            participant_id=int(winner.id),
            score=int(winner.score),
            ended_at=as_utc(live_session.ended_at) if live_session.ended_at else None,
        )
        for live_session, winner in wins
    ]
