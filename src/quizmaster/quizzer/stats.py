"""In-process result log and dashboard figures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .models import QuizResult, percent

LABEL_LIMIT = 15


@dataclass(frozen=True)
class HistoryEntry:
    label: str
    percentage: int
    title: str


@dataclass(frozen=True)
class SessionStats:
    total_taken: int
    overall_accuracy: int
    perfect_scores: int
    history: tuple[HistoryEntry, ...] = ()


@dataclass
class ResultLog:
    """Results completed during this process; nothing is persisted."""

    results: list[QuizResult] = field(default_factory=list)

    def record(self, result: QuizResult) -> None:
        self.results.append(result)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)


def short_label(title: str, limit: int = LABEL_LIMIT) -> str:
    if len(title) > limit:
        return title[:limit] + "..."
    return title


def summarize_results(results: Iterable[QuizResult]) -> SessionStats:
    """Aggregate results into dashboard figures.

    ``overall_accuracy`` is the summed score over the summed question count,
    so longer quizzes weigh more than shorter ones.
    """

    items: Sequence[QuizResult] = list(results)
    total_score = sum(result.score for result in items)
    total_questions = sum(result.total_questions for result in items)
    return SessionStats(
        total_taken=len(items),
        overall_accuracy=percent(total_score, total_questions),
        perfect_scores=sum(1 for result in items if result.is_perfect),
        history=tuple(
            HistoryEntry(
                label=short_label(result.quiz_title),
                percentage=result.percentage,
                title=result.quiz_title,
            )
            for result in items
        ),
    )
