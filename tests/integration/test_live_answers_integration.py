from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from livequiz.db.models.live_answers import LiveAnswer
from livequiz.db.repo.live_answers_repo import LiveAnswersRepo
from livequiz.db.repo.live_participants_repo import LiveParticipantsRepo
from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.game.live.errors import (
    AnswerWindowClosedError,
    DuplicateAnswerError,
    InvalidAnswerError,
    ParticipantNotFoundError,
    PhaseMismatchError,
)
from livequiz.game.live.service import get_leaderboard, submit_answer
from tests.integration.live_session_fixtures import (
    NOW,
    _advance,
    _advance_times,
    _answer,
    _create_session,
    _join,
    _load_session_row,
)


async def _start_with_players(session_factory, content, quiz_set_id, *names: str):
    created = await _create_session(session_factory, quiz_set_id=quiz_set_id, content=content)
    session_id = created.snapshot.session_id
    players = [
        await _join(
            session_factory,
            session_id=session_id,
            display_name=name,
            ledger_address=f"{name.lower()}-wallet",
        )
        for name in names
    ]
    await _advance(
        session_factory,
        session_id=session_id,
        host_token=created.host_token,
        content=content,
    )
    return created, players


async def _answer_count(session_factory) -> int:
    async with session_factory() as session:
        return int(await session.scalar(select(func.count()).select_from(LiveAnswer)))


@pytest.mark.asyncio
async def test_faster_correct_answer_leads_leaderboard(
    session_factory,
    content,
    quiz_set_id,
) -> None:
    created, (alice, bob) = await _start_with_players(
        session_factory, content, quiz_set_id, "Alice", "Bob"
    )
    session_id = created.snapshot.session_id

    alice_result = await _answer(
        session_factory,
        participant_id=alice.participant.participant_id,
        question_index=0,
        letter="A",
        offset_ms=4000,
        content=content,
    )
    bob_result = await _answer(
        session_factory,
        participant_id=bob.participant.participant_id,
        question_index=0,
        letter="C",
        offset_ms=15000,
        content=content,
    )
    assert alice_result.is_correct is True
    assert alice_result.points_awarded == 1400
    assert alice_result.score == 1400
    assert bob_result.is_correct is False
    assert bob_result.points_awarded == 0
    assert bob_result.answers_submitted_count == 2

    await _advance_times(
        session_factory,
        session_id=session_id,
        host_token=created.host_token,
        content=content,
        times=2,
    )
    async with session_factory() as session:
        entries = await get_leaderboard(session, session_id=session_id)

    assert [(e.rank, e.display_name, e.score, e.correct_answers) for e in entries] == [
        (1, "Alice", 1400, 1),
        (2, "Bob", 0, 0),
    ]


@pytest.mark.asyncio
async def test_second_answer_for_same_question_is_rejected(
    session_factory,
    content,
    quiz_set_id,
) -> None:
    _, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")
    participant_id = alice.participant.participant_id

    await _answer(
        session_factory,
        participant_id=participant_id,
        question_index=0,
        letter="B",
        offset_ms=1000,
        content=content,
    )
    with pytest.raises(DuplicateAnswerError):
        await _answer(
            session_factory,
            participant_id=participant_id,
            question_index=0,
            letter="A",
            offset_ms=2000,
            content=content,
        )

    assert await _answer_count(session_factory) == 1
    row = await _load_session_row(session_factory, alice.snapshot.session_id)
    assert row.answers_submitted_count == 1


@pytest.mark.asyncio
async def test_duplicate_insert_race_maps_to_duplicate_answer(
    session_factory,
    content,
    quiz_set_id,
    monkeypatch,
) -> None:
    _, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")
    participant_id = alice.participant.participant_id
    await _answer(
        session_factory,
        participant_id=participant_id,
        question_index=0,
        letter="A",
        offset_ms=1000,
        content=content,
    )

    async def _no_existing_answer(*args, **kwargs):
        del args, kwargs
        return None

    # Simulates a concurrent submission that passed the pre-check before the first one committed.
    monkeypatch.setattr(LiveAnswersRepo, "get_for_question", _no_existing_answer)
    with pytest.raises(DuplicateAnswerError):
        await _answer(
            session_factory,
            participant_id=participant_id,
            question_index=0,
            letter="A",
            offset_ms=1500,
            content=content,
        )

    assert await _answer_count(session_factory) == 1
    async with session_factory() as session:
        participant = await LiveParticipantsRepo.get_by_id(session, participant_id)
    assert participant is not None
    assert participant.score == 1475


@pytest.mark.asyncio
async def test_answer_outside_question_phase_is_rejected(
    session_factory,
    content,
    quiz_set_id,
) -> None:
    created, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")
    participant_id = alice.participant.participant_id

    with pytest.raises(PhaseMismatchError):
        await _answer(
            session_factory,
            participant_id=participant_id,
            question_index=1,
            letter="B",
            offset_ms=1000,
            content=content,
        )

    await _advance(
        session_factory,
        session_id=created.snapshot.session_id,
        host_token=created.host_token,
        content=content,
    )
    with pytest.raises(PhaseMismatchError):
        await _answer(
            session_factory,
            participant_id=participant_id,
            question_index=0,
            letter="A",
            offset_ms=1000,
            content=content,
        )
    assert await _answer_count(session_factory) == 0


@pytest.mark.asyncio
async def test_answer_after_time_limit_is_rejected(session_factory, content, quiz_set_id) -> None:
    _, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")

    with pytest.raises(AnswerWindowClosedError):
        await _answer(
            session_factory,
            participant_id=alice.participant.participant_id,
            question_index=0,
            letter="A",
            offset_ms=20001,
            content=content,
        )
    assert await _answer_count(session_factory) == 0


@pytest.mark.asyncio
async def test_server_clock_closes_window_after_grace(
    session_factory,
    content,
    quiz_set_id,
) -> None:
    _, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")

    async with session_factory.begin() as session:
        with pytest.raises(AnswerWindowClosedError):
            await submit_answer(
                session,
                participant_id=alice.participant.participant_id,
                question_index=0,
                letter="A",
                answered_at_offset_ms=3000,
                content=content,
                now_utc=NOW + timedelta(milliseconds=20000 + 2001),
            )

    async with session_factory.begin() as session:
        accepted = await submit_answer(
            session,
            participant_id=alice.participant.participant_id,
            question_index=0,
            letter="A",
            answered_at_offset_ms=3000,
            content=content,
            now_utc=NOW + timedelta(milliseconds=21500),
        )
    assert accepted.points_awarded == 1425


@pytest.mark.asyncio
@pytest.mark.parametrize(("letter", "offset_ms"), [("E", 1000), ("", 1000), ("A", -1)])
async def test_malformed_answer_is_rejected(
    session_factory,
    content,
    quiz_set_id,
    letter: str,
    offset_ms: int,
) -> None:
    _, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")

    async with session_factory.begin() as session:
        with pytest.raises(InvalidAnswerError):
            await submit_answer(
                session,
                participant_id=alice.participant.participant_id,
                question_index=0,
                letter=letter,
                answered_at_offset_ms=offset_ms,
                content=content,
                now_utc=NOW + timedelta(seconds=1),
            )


@pytest.mark.asyncio
async def test_lowercase_letter_is_accepted(session_factory, content, quiz_set_id) -> None:
    _, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")
    result = await _answer(
        session_factory,
        participant_id=alice.participant.participant_id,
        question_index=0,
        letter="a",
        offset_ms=0,
        content=content,
    )
    assert result.is_correct is True
    assert result.points_awarded == 1500


@pytest.mark.asyncio
async def test_unknown_participant_is_rejected(session_factory, content, quiz_set_id) -> None:
    await _start_with_players(session_factory, content, quiz_set_id, "Alice")
    with pytest.raises(ParticipantNotFoundError):
        await _answer(
            session_factory,
            participant_id=999_999,
            question_index=0,
            letter="A",
            offset_ms=1000,
            content=content,
        )


@pytest.mark.asyncio
async def test_answer_rolls_back_when_question_closed_mid_submission(
    session_factory,
    content,
    quiz_set_id,
    monkeypatch,
) -> None:
    _, (alice,) = await _start_with_players(session_factory, content, quiz_set_id, "Alice")

    async def _question_already_closed(*args, **kwargs):
        del args, kwargs
        return None

    monkeypatch.setattr(
        LiveSessionsRepo,
        "increment_answers_submitted",
        _question_already_closed,
    )
    with pytest.raises(PhaseMismatchError):
        await _answer(
            session_factory,
            participant_id=alice.participant.participant_id,
            question_index=0,
            letter="A",
            offset_ms=1000,
            content=content,
        )

    assert await _answer_count(session_factory) == 0
    async with session_factory() as session:
        participant = await LiveParticipantsRepo.get_by_id(
            session,
            alice.participant.participant_id,
        )
    assert participant is not None
    assert participant.score == 0
