from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from livequiz.api.routes.live_sessions import get_live_game_service
from livequiz.game.live.errors import (
    AnswerWindowClosedError,
    DuplicateAnswerError,
    ReconnectTokenInvalidError,
    RewardClaimInProgressError,
    RewardClaimRejectedError,
    SessionNotFoundError,
    SessionNotJoinableError,
    StaleStateError,
)
from livequiz.game.live.types import (
    AdvanceResult,
    AnswerRecord,
    ClaimEligibility,
    CreateSessionResult,
    JoinResult,
    LeaderboardEntry,
    LeaderboardPhase,
    LiveSessionSnapshot,
    LobbyPhase,
    ParticipantSnapshot,
    QuestionPhase,
    ReconnectResult,
    RewardClaimResult,
    SubmitAnswerResult,
    UnclaimedReward,
)
from livequiz.main import app

UTC = timezone.utc
NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)
SESSION_ID = UUID("7c1b0c3e-5a55-4d3c-9d6e-0f5a4e3b2a10")


def _snapshot(**overrides) -> LiveSessionSnapshot:
    values = {
        "session_id": SESSION_ID,
        "pin": "123456",
        "quiz_set_id": "general-knowledge",
        "phase": LobbyPhase(),
        "current_question_index": -1,
        "question_count": 3,
        "answers_submitted_count": 0,
        "total_players": 0,
        "version": 1,
        "created_at": NOW,
        "started_at": None,
        "ended_at": None,
        "reward_claimed": False,
    }
    values.update(overrides)
    return LiveSessionSnapshot(**values)


def _participant(**overrides) -> ParticipantSnapshot:
    values = {
        "participant_id": 11,
        "session_id": SESSION_ID,
        "display_name": "Alice",
        "ledger_address": "alice-wallet",
        "score": 0,
        "joined_at": NOW,
        "answers": (),
    }
    values.update(overrides)
    return ParticipantSnapshot(**values)


class FakeLiveGameService:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.error: Exception | None = None

    def _record(self, name: str, **kwargs) -> None:
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error

    async def create_quiz_set(self, **kwargs) -> str:
        self._record("create_quiz_set", **kwargs)
        return "quiz-1"

    async def create_session(self, **kwargs) -> CreateSessionResult:
        self._record("create_session", **kwargs)
        return CreateSessionResult(snapshot=_snapshot(), host_token="host-secret")

    async def get_session(self, **kwargs) -> LiveSessionSnapshot:
        self._record("get_session", **kwargs)
        return _snapshot()

    async def join(self, **kwargs) -> JoinResult:
        self._record("join", **kwargs)
        return JoinResult(
            snapshot=_snapshot(total_players=1, version=2),
            participant=_participant(),
            reconnect_token="player-secret",
        )

    async def join_by_pin(self, **kwargs) -> JoinResult:
        self._record("join_by_pin", **kwargs)
        return JoinResult(
            snapshot=_snapshot(total_players=1, version=2),
            participant=_participant(),
            reconnect_token="player-secret",
        )

    async def reconnect(self, **kwargs) -> ReconnectResult:
        self._record("reconnect", **kwargs)
        return ReconnectResult(
            role="PLAYER",
            snapshot=_snapshot(
                phase=QuestionPhase(question_index=0, question_started_at=NOW, time_limit_ms=20000),
                current_question_index=0,
                version=3,
            ),
            participant=_participant(
                score=1400,
                answers=(
                    AnswerRecord(
                        question_index=0,
                        letter="A",
                        is_correct=True,
                        answered_at_offset_ms=4000,
                        points_awarded=1400,
                    ),
                ),
            ),
        )

    async def advance_phase(self, **kwargs) -> AdvanceResult:
        self._record("advance_phase", **kwargs)
        return AdvanceResult(
            previous_phase="ANSWER_REVEAL",
            snapshot=_snapshot(
                phase=LeaderboardPhase(question_index=2, is_last_question=True),
                current_question_index=2,
                version=10,
            ),
        )

    async def submit_answer(self, **kwargs) -> SubmitAnswerResult:
        self._record("submit_answer", **kwargs)
        return SubmitAnswerResult(
            session_id=SESSION_ID,
            session_version=3,
            participant_id=11,
            question_index=0,
            is_correct=True,
            points_awarded=1400,
            score=1400,
            answers_submitted_count=1,
        )

    async def get_leaderboard(self, **kwargs) -> tuple[LeaderboardEntry, ...]:
        self._record("get_leaderboard", **kwargs)
        return (
            LeaderboardEntry(
                rank=1,
                participant_id=11,
                display_name="Alice",
                score=1400,
                correct_answers=1,
            ),
            LeaderboardEntry(
                rank=2,
                participant_id=12,
                display_name="Bob",
                score=0,
                correct_answers=0,
            ),
        )

    async def check_claim_eligibility(self, **kwargs) -> ClaimEligibility:
        self._record("check_claim_eligibility", **kwargs)
        return ClaimEligibility(
            eligible=False,
            reason="NOT_TOP_RANKED",
            participant_id=kwargs["participant_id"],
            session_id=kwargs["session_id"],
        )

    async def claim_reward(self, **kwargs) -> RewardClaimResult:
        self._record("claim_reward", **kwargs)
        return RewardClaimResult(
            session_id=SESSION_ID,
            participant_id=11,
            ledger_address="alice-wallet",
            receipt="tx-1",
            claimed_at=NOW,
        )

    async def list_unclaimed_rewards(self, **kwargs) -> list[UnclaimedReward]:
        self._record("list_unclaimed_rewards", **kwargs)
        return [
            UnclaimedReward(
                session_id=SESSION_ID,
                pin="123456",
                quiz_set_id="general-knowledge",
                participant_id=11,
                score=4200,
                ended_at=NOW,
            )
        ]


@pytest.fixture
def fake_service() -> Iterator[FakeLiveGameService]:
    service = FakeLiveGameService()
    app.dependency_overrides[get_live_game_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_live_game_service, None)


def test_create_session_returns_host_token(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    response = client.post("/live/sessions", json={"quiz_set_id": "general-knowledge"})

    assert response.status_code == 201
    payload = response.json()
    assert payload["host_token"] == "host-secret"
    assert payload["session"]["phase"] == "LOBBY"
    assert payload["session"]["pin"] == "123456"
    assert payload["session"]["current_question_index"] == -1
    assert fake_service.calls[0][1]["quiz_set_id"] == "general-knowledge"


def test_create_quiz_set_validates_payload(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    question = {"text": "Q", "choices": ["a", "b", "c", "d"], "correct_letter": "A"}

    created = client.post("/live/quiz-sets", json={"title": "Quiz", "questions": [question]})
    invalid = client.post(
        "/live/quiz-sets",
        json={"title": "Quiz", "questions": [{**question, "correct_letter": "E"}]},
    )

    assert created.status_code == 201
    assert created.json() == {"quiz_set_id": "quiz-1"}
    drafts = fake_service.calls[0][1]["questions"]
    assert drafts[0].choices == ("a", "b", "c", "d")
    assert invalid.status_code == 422


def test_join_by_pin_returns_reconnect_token(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    response = client.post(
        "/live/join",
        json={"pin": "123456", "display_name": "Alice", "ledger_address": "alice-wallet"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["reconnect_token"] == "player-secret"
    assert payload["participant"]["participant_id"] == 11
    assert payload["session"]["total_players"] == 1


def test_join_closed_session_maps_to_conflict(fake_service: FakeLiveGameService) -> None:
    fake_service.error = SessionNotJoinableError()
    client = TestClient(app)
    response = client.post(
        f"/live/sessions/{SESSION_ID}/participants",
        json={"display_name": "Carol"},
    )

    assert response.status_code == 409
    assert response.json() == {"detail": {"code": "E_SESSION_NOT_JOINABLE"}}


def test_reconnect_returns_question_timing(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    response = client.post("/live/reconnect", json={"token": "player-secret", "pin": "123456"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["role"] == "PLAYER"
    assert payload["session"]["phase"] == "QUESTION"
    assert payload["session"]["time_limit_ms"] == 20000
    assert payload["participant"]["answers"][0]["points_awarded"] == 1400
    assert payload["leaderboard"] == []


def test_advance_passes_host_header_and_expected_version(
    fake_service: FakeLiveGameService,
) -> None:
    client = TestClient(app)
    response = client.post(
        f"/live/sessions/{SESSION_ID}/advance",
        json={"expected_version": 9, "target_phase": "LEADERBOARD"},
        headers={"X-Host-Token": "host-secret"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["previous_phase"] == "ANSWER_REVEAL"
    assert payload["session"]["is_last_question"] is True
    call = fake_service.calls[0][1]
    assert call["host_token"] == "host-secret"
    assert call["expected_version"] == 9
    assert call["target_phase"] == "LEADERBOARD"


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (StaleStateError(), 409, "E_STALE_STATE"),
        (ReconnectTokenInvalidError(), 403, "E_TOKEN_INVALID"),
        (SessionNotFoundError(), 404, "E_SESSION_NOT_FOUND"),
    ],
)
def test_advance_error_mapping(
    fake_service: FakeLiveGameService,
    error: Exception,
    status_code: int,
    code: str,
) -> None:
    fake_service.error = error
    client = TestClient(app)
    response = client.post(f"/live/sessions/{uuid4()}/advance", json={})

    assert response.status_code == status_code
    assert response.json() == {"detail": {"code": code}}


def test_submit_answer_uses_participant_token(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    response = client.post(
        "/live/participants/11/answers",
        json={"question_index": 0, "letter": "A", "answered_at_offset_ms": 4000},
        headers={"X-Participant-Token": "player-secret"},
    )

    assert response.status_code == 201
    assert response.json()["points_awarded"] == 1400
    call = fake_service.calls[0][1]
    assert call["reconnect_token"] == "player-secret"
    assert call["participant_id"] == 11


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (DuplicateAnswerError(), 409, "E_DUPLICATE_ANSWER"),
        (AnswerWindowClosedError(), 410, "E_ANSWER_WINDOW_CLOSED"),
    ],
)
def test_submit_answer_error_mapping(
    fake_service: FakeLiveGameService,
    error: Exception,
    status_code: int,
    code: str,
) -> None:
    fake_service.error = error
    client = TestClient(app)
    response = client.post(
        "/live/participants/11/answers",
        json={"question_index": 0, "letter": "A", "answered_at_offset_ms": 4000},
        headers={"X-Participant-Token": "player-secret"},
    )

    assert response.status_code == status_code
    assert response.json() == {"detail": {"code": code}}


def test_leaderboard_and_eligibility(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    board = client.get(f"/live/sessions/{SESSION_ID}/leaderboard")
    eligibility = client.get(
        f"/live/sessions/{SESSION_ID}/participants/12/eligibility",
        params={"ledger_address": "bob-wallet"},
    )

    assert board.status_code == 200
    assert [entry["rank"] for entry in board.json()["entries"]] == [1, 2]
    assert eligibility.status_code == 200
    assert eligibility.json() == {
        "session_id": str(SESSION_ID),
        "participant_id": 12,
        "eligible": False,
        "reason": "NOT_TOP_RANKED",
    }


def test_claim_reward_and_vault_rejection(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    url = f"/live/sessions/{SESSION_ID}/participants/11/claim"
    body = {"ledger_address": "alice-wallet"}

    claimed = client.post(url, json=body, headers={"X-Participant-Token": "player-secret"})
    assert claimed.status_code == 200
    assert claimed.json()["receipt"] == "tx-1"

    fake_service.error = RewardClaimRejectedError()
    rejected = client.post(url, json=body, headers={"X-Participant-Token": "player-secret"})
    assert rejected.status_code == 502
    assert rejected.json() == {"detail": {"code": "E_REWARD_CLAIM_REJECTED"}}

    fake_service.error = RewardClaimInProgressError()
    in_progress = client.post(url, json=body, headers={"X-Participant-Token": "player-secret"})
    assert in_progress.status_code == 409
    assert in_progress.json() == {"detail": {"code": "E_REWARD_CLAIM_IN_PROGRESS"}}


def test_unclaimed_rewards_listing(fake_service: FakeLiveGameService) -> None:
    client = TestClient(app)
    response = client.get("/live/rewards/unclaimed", params={"ledger_address": "alice-wallet"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["ledger_address"] == "alice-wallet"
    assert payload["rewards"][0]["score"] == 4200
