"""Quiz attempt state: randomized presentation, selection and scoring.

``start_session`` builds a fresh :class:`QuizSessionState` from a quiz. The
state owns shuffled, label-stripped copies of the questions and never
touches the source quiz. A state moves from active (any number of
``select`` calls) to submitted, after which it no longer changes.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, MutableSequence, Optional, Sequence, TypeVar

from .labels import answers_match, strip_label
from .models import Question, Quiz, QuizResult, new_id, percent, timestamp

__all__ = [
    "SessionQuestion",
    "QuizSessionState",
    "shuffle_items",
    "start_session",
]

T = TypeVar("T")
Clock = Callable[[], str]

_LOGGER = logging.getLogger(__name__)


def shuffle_items(
    items: Sequence[T], rng: Optional[random.Random] = None
) -> list[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates)."""

    source = rng or random.Random()
    shuffled: MutableSequence[T] = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = source.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return list(shuffled)


@dataclass(frozen=True)
class SessionQuestion:
    """A question as presented in one attempt.

    ``options`` are shuffled and stripped of labels; ``correct_answer`` is
    stripped the same way so comparisons ignore labels.
    """

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: str

    @classmethod
    def from_question(
        cls, question: Question, rng: random.Random
    ) -> "SessionQuestion":
        options = shuffle_items(question.options, rng)
        return cls(
            id=question.id,
            text=question.text,
            options=tuple(strip_label(option) for option in options),
            correct_answer=strip_label(question.correct_answer),
        )


@dataclass
class QuizSessionState:
    """Mutable state of one attempt at a quiz."""

    quiz: Quiz
    questions: list[SessionQuestion]
    selections: dict[str, str] = field(default_factory=dict)
    submitted: bool = False
    score: int = 0
    result: Optional[QuizResult] = None

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def question(self, question_id: str) -> Optional[SessionQuestion]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def answered_count(self) -> int:
        return len(self.selections)

    def is_complete(self) -> bool:
        return self.answered_count() == self.total_questions

    def selected_for(self, question_id: str) -> Optional[str]:
        return self.selections.get(question_id)

    def is_correct(self, question: SessionQuestion) -> bool:
        return answers_match(
            self.selections.get(question.id), question.correct_answer
        )

    def percentage(self) -> int:
        return percent(self.score, self.total_questions)

    def select(self, question_id: str, option: str) -> bool:
        """Record ``option`` for ``question_id``, replacing any prior choice.

        Returns ``False`` without changing anything when the attempt is
        submitted, the question is unknown or the option is not offered.
        """

        if self.submitted:
            return False
        question = self.question(question_id)
        if question is None or option not in question.options:
            return False
        self.selections[question_id] = option
        return True

    def submit(self, *, clock: Optional[Clock] = None) -> QuizResult:
        """Score the attempt and return its single :class:`QuizResult`.

        Submitting again returns the same result unchanged.
        """

        if self.submitted and self.result is not None:
            return self.result
        self.score = sum(
            1 for question in self.questions if self.is_correct(question)
        )
        self.submitted = True
        self.result = QuizResult(
            id=new_id(),
            quiz_id=self.quiz.id,
            quiz_title=self.quiz.title,
            score=self.score,
            total_questions=self.total_questions,
            date=(clock or timestamp)(),
        )
        _LOGGER.info(
            "Quiz submitted",
            extra={
                "quiz_id": self.quiz.id,
                "score": self.score,
                "total": self.total_questions,
            },
        )
        return self.result


def start_session(
    quiz: Quiz, *, rng: Optional[random.Random] = None
) -> QuizSessionState:
    """Begin a fresh attempt at ``quiz`` with shuffled questions/options."""

    source = rng or random.Random()
    questions = [
        SessionQuestion.from_question(question, source)
        for question in shuffle_items(quiz.questions, source)
    ]
    return QuizSessionState(quiz=quiz, questions=questions)
