from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from livequiz.db.models import Base
from livequiz.game.live.service_facade import LiveGameService
from livequiz.game.questions.authoring import create_quiz_set
from livequiz.game.questions.provider import DbQuizContentProvider
from livequiz.game.questions.types import QuestionDraft
from livequiz.services.broadcast import InMemoryBroadcastChannel
from livequiz.services.reward_vault import RewardClaimReceipt, RewardVaultRejectedError

UTC = timezone.utc

QUIZ_QUESTIONS = (
    QuestionDraft(
        text="Capital of France?",
        choices=("Paris", "Rome", "Madrid", "Berlin"),
        correct_letter="A",
        time_limit_ms=20000,
    ),
    QuestionDraft(
        text="2 + 2?",
        choices=("3", "4", "5", "22"),
        correct_letter="B",
        time_limit_ms=None,
    ),
    QuestionDraft(
        text="Largest planet?",
        choices=("Mars", "Venus", "Jupiter", "Earth"),
        correct_letter="C",
        time_limit_ms=15000,
    ),
)


class FakeRewardVault:
    def __init__(self) -> None:
        self.claims: list[tuple[UUID, str]] = []
        self.idempotency_keys: list[str] = []
        self.reject = False
        self.delay_seconds = 0.0

    async def claim(
        self,
        *,
        session_id: UUID,
        ledger_address: str,
        idempotency_key: str,
    ) -> RewardClaimReceipt:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.reject:
            raise RewardVaultRejectedError("vault is empty")
        self.claims.append((session_id, ledger_address))
        self.idempotency_keys.append(idempotency_key)
        return RewardClaimReceipt(receipt=f"receipt-{len(self.claims)}")


@pytest.fixture
async def session_factory(tmp_path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'livequiz.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def content(session_factory: async_sessionmaker[AsyncSession]) -> DbQuizContentProvider:
    return DbQuizContentProvider(session_factory)


@pytest.fixture
async def quiz_set_id(session_factory: async_sessionmaker[AsyncSession]) -> str:
    async with session_factory.begin() as session:
        return await create_quiz_set(
            session,
            title="General knowledge",
            questions=QUIZ_QUESTIONS,
            now_utc=datetime(2026, 10, 1, 12, 0, tzinfo=UTC),
            quiz_set_id="general-knowledge",
        )


@pytest.fixture
def broadcaster() -> InMemoryBroadcastChannel:
    return InMemoryBroadcastChannel()


@pytest.fixture
def vault() -> FakeRewardVault:
    return FakeRewardVault()


@pytest.fixture
def live_service(
    session_factory: async_sessionmaker[AsyncSession],
    broadcaster: InMemoryBroadcastChannel,
    content: DbQuizContentProvider,
    vault: FakeRewardVault,
) -> LiveGameService:
    return LiveGameService(
        session_factory=session_factory,
        broadcaster=broadcaster,
        content=content,
        vault=vault,
    )
