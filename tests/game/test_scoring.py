from __future__ import annotations

import pytest

from livequiz.game.scoring import (
    BASE_POINTS,
    MAX_POINTS_PER_QUESTION,
    TIME_BONUS_MAX,
    score,
    time_bonus,
)


def test_incorrect_answer_scores_zero() -> None:
    assert score(False, 0, 20000) == 0
    assert score(False, 19999, 20000) == 0


def test_instant_correct_answer_earns_maximum() -> None:
    assert score(True, 0, 20000) == MAX_POINTS_PER_QUESTION


def test_correct_answer_at_limit_earns_base_points() -> None:
    assert score(True, 20000, 20000) == BASE_POINTS


def test_correct_answer_score_is_non_increasing_in_elapsed() -> None:
    previous = score(True, 0, 20000)
    for elapsed_ms in range(0, 20001, 250):
        current = score(True, elapsed_ms, 20000)
        assert 0 < current <= previous
        previous = current


@pytest.mark.parametrize(
    ("elapsed_ms", "expected"),
    [
        (4000, 1400),
        (15000, 1125),
        (10000, 1250),
        (-500, 1500),
        (90000, 1000),
    ],
)
def test_score_linear_time_bonus(elapsed_ms: int, expected: int) -> None:
    assert score(True, elapsed_ms, 20000) == expected


def test_non_positive_time_limit_awards_base_only() -> None:
    assert time_bonus(elapsed_ms=0, time_limit_ms=0) == 0
    assert score(True, 0, 0) == BASE_POINTS
    assert score(True, 0, -10) == BASE_POINTS


def test_time_bonus_bounds() -> None:
    assert time_bonus(elapsed_ms=0, time_limit_ms=7) == TIME_BONUS_MAX
    assert time_bonus(elapsed_ms=7, time_limit_ms=7) == 0
    assert score(True, 1, 3) <= MAX_POINTS_PER_QUESTION
