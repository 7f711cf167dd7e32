"""Time-weighted points for a single answer.

A correct answer earns ``BASE_POINTS`` plus a bonus that decays linearly from
``TIME_BONUS_MAX`` at 0 ms to 0 at the time limit. Integer arithmetic only, so
identical inputs always produce identical points.
"""

from __future__ import annotations

BASE_POINTS = 1000
TIME_BONUS_MAX = 500
MAX_POINTS_PER_QUESTION = BASE_POINTS + TIME_BONUS_MAX


def time_bonus(*, elapsed_ms: int, time_limit_ms: int) -> int:
    if time_limit_ms <= 0:
        return 0
    clamped_elapsed = min(max(0, int(elapsed_ms)), int(time_limit_ms))
    remaining_ms = int(time_limit_ms) - clamped_elapsed
    return (TIME_BONUS_MAX * remaining_ms) // int(time_limit_ms)


def score(is_correct: bool, elapsed_ms: int, time_limit_ms: int) -> int:
    if not is_correct:
        return 0
    points = BASE_POINTS + time_bonus(elapsed_ms=elapsed_ms, time_limit_ms=time_limit_ms)
    return min(points, MAX_POINTS_PER_QUESTION)
