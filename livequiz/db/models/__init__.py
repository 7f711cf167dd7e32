from livequiz.db.models.base import Base
from livequiz.db.models.live_answers import LiveAnswer
from livequiz.db.models.live_participants import LiveParticipant
from livequiz.db.models.live_sessions import LiveSession
from livequiz.db.models.quiz_set_questions import QuizSetQuestion
from livequiz.db.models.quiz_sets import QuizSet

__all__ = [
    "Base",
    "LiveAnswer",
    "LiveParticipant",
    "LiveSession",
    "QuizSet",
    "QuizSetQuestion",
]
