from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class QuestionContent:
    quiz_set_id: str
    question_index: int
    text: str
    choices: tuple[str, str, str, str]
    correct_letter: str
    time_limit_ms: int | None = None


@dataclass(frozen=True, slots=True)
class QuestionDraft:
    text: str
    choices: tuple[str, str, str, str]
    correct_letter: str
    time_limit_ms: int | None = None
