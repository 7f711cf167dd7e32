class LiveGameError(Exception):
    pass


class SessionNotFoundError(LiveGameError):
    pass


class SessionNotJoinableError(LiveGameError):
    pass


class InvalidTransitionError(LiveGameError):
    pass


class StaleStateError(LiveGameError):
    """Lost a conditional write; re-read the session and retry."""


class PhaseMismatchError(LiveGameError):
    pass


class AnswerWindowClosedError(LiveGameError):
    pass


class DuplicateAnswerError(LiveGameError):
    pass


class ReconnectTokenInvalidError(LiveGameError):
    pass


class ParticipantNotFoundError(LiveGameError):
    pass


class InvalidAnswerError(LiveGameError):
    pass


class InvalidDisplayNameError(LiveGameError):
    pass


class LeaveNotAllowedError(LiveGameError):
    pass


class QuizSetNotFoundError(LiveGameError):
    pass


class RewardNotEligibleError(LiveGameError):
    pass


class RewardAlreadyClaimedError(LiveGameError):
    pass


class RewardClaimRejectedError(LiveGameError):
    pass


class RewardClaimInProgressError(RewardAlreadyClaimedError):
    """Another claim for the same session holds the reservation."""
