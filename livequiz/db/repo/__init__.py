from livequiz.db.repo.live_answers_repo import LiveAnswersRepo
from livequiz.db.repo.live_participants_repo import LiveParticipantsRepo
from livequiz.db.repo.live_sessions_repo import LiveSessionsRepo
from livequiz.db.repo.quiz_sets_repo import QuizSetsRepo

__all__ = [
    "LiveAnswersRepo",
    "LiveParticipantsRepo",
    "LiveSessionsRepo",
    "QuizSetsRepo",
]
