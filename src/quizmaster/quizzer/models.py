"""Quiz data model shared by the parser, session engine and store."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, MutableMapping

__all__ = [
    "Question",
    "Quiz",
    "QuizResult",
    "new_id",
    "percent",
    "timestamp",
]


def new_id() -> str:
    return uuid.uuid4().hex


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def percent(part: int, whole: int) -> int:
    """Return ``part / whole`` as a whole percentage, halves rounded up."""
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string.")
    return value


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Field '{key}' must be an integer.")
    return value


@dataclass(frozen=True)
class Question:
    """A multiple-choice question as authored.

    ``options`` keep their label prefix (``"b) Paris"``) and
    ``correct_answer`` may be labelled or bare; comparison happens on the
    stripped form at session time.
    """

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: str

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        if not isinstance(payload, Mapping):
            raise ValueError("Question payload must be a mapping.")
        options = payload.get("options")
        if not isinstance(options, list) or not all(
            isinstance(item, str) for item in options
        ):
            raise ValueError("Field 'options' must be a list of strings.")
        if not options:
            raise ValueError("Question needs at least one option.")
        return cls(
            id=_require_str(payload, "id"),
            text=_require_str(payload, "text"),
            options=tuple(options),
            correct_answer=_require_str(payload, "correct_answer"),
        )


@dataclass(frozen=True)
class Quiz:
    """A titled, ordered collection of questions."""

    id: str
    title: str
    questions: tuple[Question, ...]
    created_at: str = field(default_factory=timestamp)
    description: str | None = None

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "id": self.id,
            "title": self.title,
            "questions": [question.to_dict() for question in self.questions],
            "created_at": self.created_at,
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Quiz":
        if not isinstance(payload, Mapping):
            raise ValueError("Quiz payload must be a mapping.")
        questions = payload.get("questions")
        if not isinstance(questions, list):
            raise ValueError("Field 'questions' must be a list.")
        if not questions:
            raise ValueError("Quiz needs at least one question.")
        description = payload.get("description")
        if description is not None and not isinstance(description, str):
            raise ValueError("Field 'description' must be a string.")
        return cls(
            id=_require_str(payload, "id"),
            title=_require_str(payload, "title"),
            questions=tuple(Question.from_dict(item) for item in questions),
            created_at=_require_str(payload, "created_at"),
            description=description,
        )


@dataclass(frozen=True)
class QuizResult:
    """Snapshot of one completed attempt; never persisted."""

    id: str
    quiz_id: str
    quiz_title: str
    score: int
    total_questions: int
    date: str

    @property
    def percentage(self) -> int:
        return percent(self.score, self.total_questions)

    @property
    def is_perfect(self) -> bool:
        return self.score == self.total_questions

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "quiz_title": self.quiz_title,
            "score": self.score,
            "total_questions": self.total_questions,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizResult":
        return cls(
            id=_require_str(payload, "id"),
            quiz_id=_require_str(payload, "quiz_id"),
            quiz_title=_require_str(payload, "quiz_title"),
            score=_require_int(payload, "score"),
            total_questions=_require_int(payload, "total_questions"),
            date=_require_str(payload, "date"),
        )
