"""Convert pasted free-form text into a validated :class:`Quiz`.

Expected layout (whitespace and bold markers are forgiving)::

    My Quiz Title

    1. Question text here?
    a) Option one
    b) Option two
    **Answer: b) Option two**

The first non-blank line is the title. Each question is a numbered stem,
one or more lettered options and an ``Answer:`` line. Stems may wrap over
several lines before the first option. Lines are classified with the
precedence answer > question start > option > stem continuation.

Anything the parser drops (an answer with no question, a question cut off
by the next one, trailing unfinished input, stray lines) is reported as a
:class:`ParseDiagnostic` instead of disappearing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from .labels import find_matching_option, strip_label
from .models import Question, Quiz, new_id, timestamp

__all__ = [
    "ANSWER_CHECK_MODES",
    "AnswerCheck",
    "ParseDiagnostic",
    "ParseError",
    "ParsedQuiz",
    "parse_quiz",
    "parse_quiz_text",
    "render_quiz_text",
]

AnswerCheck = Literal["reject", "warn", "ignore"]
ANSWER_CHECK_MODES: tuple[str, ...] = ("reject", "warn", "ignore")

DiagnosticKind = Literal[
    "orphan-answer",
    "interrupted-question",
    "unterminated-question",
    "stray-option",
    "ignored-line",
    "answer-mismatch",
]

MIN_LINES = 3

_ANSWER_RE = re.compile(
    r"^\**Answer:\s*(?:[a-zA-Z][).]\s*)?(.+?)\**$", re.IGNORECASE
)
_QUESTION_RE = re.compile(r"^\d+\.\s+(.+)")
_OPTION_RE = re.compile(r"^[a-zA-Z][).]\s+(.+)")

_LOGGER = logging.getLogger(__name__)


class ParseError(RuntimeError):
    """Raised when text cannot be turned into a usable quiz.

    ``reason`` is one of ``too-short``, ``no-questions`` or
    ``answer-mismatch``.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        diagnostics: Sequence["ParseDiagnostic"] = (),
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.diagnostics = tuple(diagnostics)


@dataclass(frozen=True)
class ParseDiagnostic:
    """A line or block the parser did not turn into quiz content."""

    line_number: int
    kind: DiagnosticKind
    text: str

    def describe(self) -> str:
        return f"line {self.line_number}: {self.kind}: {self.text}"


@dataclass(frozen=True)
class ParsedQuiz:
    quiz: Quiz
    diagnostics: tuple[ParseDiagnostic, ...] = ()

    def of_kind(self, kind: str) -> tuple[ParseDiagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.kind == kind)


@dataclass
class _PendingQuestion:
    text: str
    line_number: int
    options: list[str] = field(default_factory=list)


class _QuestionCollector:
    """Two-state line machine: idle (no pending) or reading a question."""

    def __init__(self) -> None:
        self.pending: Optional[_PendingQuestion] = None
        self.questions: list[Question] = []
        self.answer_lines: dict[str, int] = {}
        self.diagnostics: list[ParseDiagnostic] = []

    def feed(self, number: int, line: str) -> None:
        answer = _ANSWER_RE.match(line)
        if answer:
            self._on_answer(number, line, answer.group(1))
            return
        question = _QUESTION_RE.match(line)
        if question:
            self._on_question(number, question.group(1))
            return
        if _OPTION_RE.match(line):
            if self.pending is None:
                self._note(number, "stray-option", line)
            else:
                self.pending.options.append(line)
            return
        if self.pending is not None and not self.pending.options:
            self.pending.text += " " + line
            return
        self._note(number, "ignored-line", line)

    def finish(self) -> None:
        if self.pending is not None:
            self._note(
                self.pending.line_number,
                "unterminated-question",
                self.pending.text,
            )
            self.pending = None

    def _on_answer(self, number: int, line: str, captured: str) -> None:
        pending = self.pending
        if pending is None or not pending.options:
            self._note(number, "orphan-answer", line)
            return
        answer = captured.strip()
        if answer.endswith("**"):
            answer = answer[:-2]
        question = Question(
            id=new_id(),
            text=pending.text,
            options=tuple(pending.options),
            correct_answer=answer,
        )
        self.questions.append(question)
        self.answer_lines[question.id] = number
        self.pending = None

    def _on_question(self, number: int, stem: str) -> None:
        if self.pending is not None:
            self._note(
                self.pending.line_number,
                "interrupted-question",
                self.pending.text,
            )
        self.pending = _PendingQuestion(text=stem, line_number=number)

    def _note(self, number: int, kind: DiagnosticKind, text: str) -> None:
        self.diagnostics.append(ParseDiagnostic(number, kind, text))


def _non_blank_lines(raw_text: str) -> list[tuple[int, str]]:
    lines: list[tuple[int, str]] = []
    for number, raw in enumerate(raw_text.splitlines(), start=1):
        line = raw.strip()
        if line:
            lines.append((number, line))
    return lines


def parse_quiz_text(
    raw_text: str,
    *,
    existing: Optional[Quiz] = None,
    answer_check: AnswerCheck = "reject",
    logger: Optional[logging.Logger] = None,
) -> ParsedQuiz:
    """Parse ``raw_text`` and return the quiz plus parser diagnostics.

    ``existing`` is the quiz being edited; its id is reused. ``created_at``
    is always refreshed. ``answer_check`` decides what happens when an
    answer does not match exactly one option: ``reject`` raises,
    ``warn`` records an ``answer-mismatch`` diagnostic, ``ignore`` accepts
    silently.
    """

    if answer_check not in ANSWER_CHECK_MODES:
        raise ValueError(f"Unknown answer check mode '{answer_check}'.")
    log = logger or _LOGGER

    lines = _non_blank_lines(raw_text)
    if len(lines) < MIN_LINES:
        raise ParseError("Text is too short to be a quiz.", reason="too-short")

    title = lines[0][1]
    collector = _QuestionCollector()
    for number, line in lines[1:]:
        collector.feed(number, line)
    collector.finish()

    diagnostics = list(collector.diagnostics)
    if not collector.questions:
        raise ParseError(
            "No valid questions found. Check the format.",
            reason="no-questions",
            diagnostics=diagnostics,
        )

    if answer_check != "ignore":
        mismatches = _answer_mismatches(collector)
        if mismatches and answer_check == "reject":
            first = mismatches[0]
            raise ParseError(
                f"Answer on line {first.line_number} ('{first.text}') does "
                "not match exactly one option.",
                reason="answer-mismatch",
                diagnostics=diagnostics + mismatches,
            )
        for item in mismatches:
            log.warning(
                "Answer does not match an option",
                extra={"line_number": item.line_number, "answer": item.text},
            )
        diagnostics.extend(mismatches)

    quiz = Quiz(
        id=existing.id if existing is not None else new_id(),
        title=title,
        questions=tuple(collector.questions),
        created_at=timestamp(),
    )
    log.info(
        "Parsed quiz text",
        extra={
            "quiz_id": quiz.id,
            "questions": len(quiz.questions),
            "diagnostics": len(diagnostics),
        },
    )
    return ParsedQuiz(quiz=quiz, diagnostics=tuple(diagnostics))


def parse_quiz(
    raw_text: str,
    *,
    existing: Optional[Quiz] = None,
    answer_check: AnswerCheck = "reject",
) -> Quiz:
    """Return the parsed quiz or raise :class:`ParseError`."""

    return parse_quiz_text(
        raw_text, existing=existing, answer_check=answer_check
    ).quiz


def _answer_mismatches(
    collector: _QuestionCollector,
) -> list[ParseDiagnostic]:
    found: list[ParseDiagnostic] = []
    for question in collector.questions:
        match = find_matching_option(
            question.correct_answer, question.options
        )
        if match is None:
            found.append(
                ParseDiagnostic(
                    collector.answer_lines[question.id],
                    "answer-mismatch",
                    question.correct_answer,
                )
            )
    return found


def render_quiz_text(quiz: Quiz) -> str:
    """Rebuild the editable text form of ``quiz``.

    Options without a letter label (generated quizzes, numbered options)
    are relabelled ``a)``, ``b)``, ... so the text parses back into the
    same questions.
    """

    lines = [quiz.title, ""]
    for number, question in enumerate(quiz.questions, start=1):
        lines.append(f"{number}. {' '.join(question.text.split())}")
        for idx, option in enumerate(question.options):
            option = option.strip()
            if not _OPTION_RE.match(option):
                option = f"{chr(ord('a') + idx)}) {strip_label(option)}"
            lines.append(option)
        lines.append(f"**Answer: {question.correct_answer}**")
        lines.append("")
    return "\n".join(lines)
