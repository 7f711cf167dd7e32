from __future__ import annotations

from livequiz.game.live.answers import submit_answer
from livequiz.game.live.create import create_session
from livequiz.game.live.leaderboard import (
    build_leaderboard,
    check_claim_eligibility,
    get_leaderboard,
    is_eligible_to_claim,
    rank,
)
from livequiz.game.live.lifecycle import advance_phase, get_session_snapshot
from livequiz.game.live.registry import (
    authorize_participant,
    join_session,
    join_session_by_pin,
    leave_session,
    reconnect,
)
from livequiz.game.live.rewards import claim_reward, list_unclaimed_rewards

__all__ = [
    "advance_phase",
    "authorize_participant",
    "build_leaderboard",
    "check_claim_eligibility",
    "claim_reward",
    "create_session",
    "get_leaderboard",
    "get_session_snapshot",
    "is_eligible_to_claim",
    "join_session",
    "join_session_by_pin",
    "leave_session",
    "list_unclaimed_rewards",
    "rank",
    "reconnect",
    "submit_answer",
]
