from __future__ import annotations

PHASE_LOBBY = "LOBBY"
PHASE_QUESTION = "QUESTION"
PHASE_ANSWER_REVEAL = "ANSWER_REVEAL"
PHASE_LEADERBOARD = "LEADERBOARD"
PHASE_FINISHED = "FINISHED"

PHASES: tuple[str, ...] = (
    PHASE_LOBBY,
    PHASE_QUESTION,
    PHASE_ANSWER_REVEAL,
    PHASE_LEADERBOARD,
    PHASE_FINISHED,
)
IN_PLAY_PHASES = frozenset({PHASE_QUESTION, PHASE_ANSWER_REVEAL, PHASE_LEADERBOARD})

QUESTION_INDEX_UNSET = -1
ANSWER_LETTERS: tuple[str, ...] = ("A", "B", "C", "D")

PIN_LENGTH = 6
DISPLAY_NAME_MAX_LENGTH = 32
RECONNECT_TOKEN_BYTES = 32

ROLE_HOST = "HOST"
ROLE_PLAYER = "PLAYER"

ELIGIBILITY_ELIGIBLE = "ELIGIBLE"
ELIGIBILITY_NOT_FINISHED = "NOT_FINISHED"
ELIGIBILITY_NOT_TOP_RANKED = "NOT_TOP_RANKED"
ELIGIBILITY_ADDRESS_MISMATCH = "ADDRESS_MISMATCH"

EVENT_PARTICIPANT_JOINED = "participant_joined"
EVENT_PARTICIPANT_LEFT = "participant_left"
EVENT_PHASE_CHANGED = "phase_changed"
EVENT_ANSWER_SUBMITTED = "answer_submitted"
EVENT_REWARD_CLAIMED = "reward_claimed"

UNCLAIMED_REWARDS_LIMIT = 100


def session_topic(session_id: object) -> str:
    return f"live_session:{session_id}"
