"""Add, replace and delete quizzes in the stored collection."""

from __future__ import annotations

from typing import List, Optional

from .models import Quiz
from .storage import QuizStore


class QuizLibrary:
    """The quiz collection with whole-collection replace-and-persist.

    Every mutation builds a new list, swaps it in and saves all of it.
    There is no merge with concurrent writers: the last save wins.
    """

    def __init__(self, store: QuizStore) -> None:
        self._store = store
        self._quizzes: Optional[List[Quiz]] = None

    @property
    def quizzes(self) -> List[Quiz]:
        if self._quizzes is None:
            self._quizzes = self._store.load()
        return list(self._quizzes)

    def get(self, quiz_id: str) -> Optional[Quiz]:
        """Find a quiz by exact id or by a unique id prefix."""

        quizzes = self.quizzes
        for quiz in quizzes:
            if quiz.id == quiz_id:
                return quiz
        if not quiz_id:
            return None
        matches = [quiz for quiz in quizzes if quiz.id.startswith(quiz_id)]
        return matches[0] if len(matches) == 1 else None

    def upsert(self, quiz: Quiz) -> bool:
        """Replace the quiz with the same id in place, else add it first.

        Returns ``True`` when an existing quiz was replaced.
        """

        current = self.quizzes
        for idx, existing in enumerate(current):
            if existing.id == quiz.id:
                current[idx] = quiz
                self._replace(current)
                return True
        self._replace([quiz, *current])
        return False

    def delete(self, quiz_id: str) -> bool:
        current = self.quizzes
        remaining = [quiz for quiz in current if quiz.id != quiz_id]
        if len(remaining) == len(current):
            return False
        self._replace(remaining)
        return True

    def _replace(self, quizzes: List[Quiz]) -> None:
        self._quizzes = quizzes
        self._store.save(quizzes)
