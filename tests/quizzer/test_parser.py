from __future__ import annotations

import logging

import pytest

from quizmaster.quizzer.labels import strip_label
from quizmaster.quizzer.models import Question, Quiz
from quizmaster.quizzer.parser import (
    ParseError,
    parse_quiz,
    parse_quiz_text,
    render_quiz_text,
)

from fixtures import CAPITALS_TEXT, FIVE_QUESTION_TEXT, make_quiz


def test_parse_single_question_trims_bold_answer() -> None:
    parsed = parse_quiz_text(CAPITALS_TEXT)
    quiz = parsed.quiz

    assert quiz.title == "Capitals"
    assert len(quiz.questions) == 1
    question = quiz.questions[0]
    assert question.text == "Capital of France?"
    assert question.options == ("a) Berlin", "b) Paris")
    assert [strip_label(o) for o in question.options] == ["Berlin", "Paris"]
    assert question.correct_answer == "Paris"
    assert parsed.diagnostics == ()


def test_parse_keeps_source_order_and_count() -> None:
    quiz = parse_quiz(FIVE_QUESTION_TEXT)

    assert quiz.title == "General Knowledge"
    assert [q.text for q in quiz.questions] == [
        "What is the capital of France?",
        "Which planet is known as the red planet?",
        "What is 2 + 2?",
        "Largest ocean on Earth?",
        "Which gas do plants absorb?",
    ]
    assert [q.correct_answer for q in quiz.questions] == [
        "Paris",
        "Mars",
        "4",
        "Pacific",
        "carbon dioxide",
    ]
    assert len({q.id for q in quiz.questions}) == 5


def test_parse_too_short_raises() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_quiz_text("Title\n\n\n1. Only a stem?\n   \n")

    assert excinfo.value.reason == "too-short"
    assert str(excinfo.value) == "Text is too short to be a quiz."


def test_parse_without_answer_line_has_no_questions() -> None:
    text = "Title\n1. A question with no answer?\na) Yes\nb) No"

    with pytest.raises(ParseError) as excinfo:
        parse_quiz_text(text)

    error = excinfo.value
    assert error.reason == "no-questions"
    assert str(error) == "No valid questions found. Check the format."
    kinds = [item.kind for item in error.diagnostics]
    assert kinds == ["unterminated-question"]
    assert error.diagnostics[0].line_number == 2


def test_parse_reports_dropped_blocks() -> None:
    text = "\n".join(
        [
            "Quiz",
            "Answer: floating",
            "a) stray option",
            "1. Interrupted?",
            "a) one",
            "2. Kept?",
            "a) yes",
            "b) no",
            "**Answer: a) yes**",
            "some trailing remark",
            "3. Unfinished?",
        ]
    )

    parsed = parse_quiz_text(text)

    assert [q.text for q in parsed.quiz.questions] == ["Kept?"]
    found = [(d.line_number, d.kind) for d in parsed.diagnostics]
    assert found == [
        (2, "orphan-answer"),
        (3, "stray-option"),
        (4, "interrupted-question"),
        (10, "ignored-line"),
        (11, "unterminated-question"),
    ]
    assert parsed.of_kind("orphan-answer")[0].describe() == (
        "line 2: orphan-answer: Answer: floating"
    )


def test_answer_before_any_option_is_orphaned() -> None:
    text = "Quiz\n1. Stem?\nAnswer: x\na) x\nAnswer: x"

    parsed = parse_quiz_text(text)

    assert len(parsed.quiz.questions) == 1
    assert parsed.quiz.questions[0].options == ("a) x",)
    assert [d.kind for d in parsed.diagnostics] == ["orphan-answer"]


def test_multiline_stem_joins_with_space() -> None:
    text = "Quiz\n1. First part\nsecond part\na) opt\nAnswer: opt"

    quiz = parse_quiz(text)

    assert quiz.questions[0].text == "First part second part"


def test_answer_check_reject_is_default() -> None:
    text = "Quiz\n1. Capital?\na) Berlin\nb) Paris\nAnswer: Madrid"

    with pytest.raises(ParseError) as excinfo:
        parse_quiz_text(text)

    assert excinfo.value.reason == "answer-mismatch"
    assert "line 5" in str(excinfo.value)
    assert excinfo.value.diagnostics[-1].kind == "answer-mismatch"


def test_answer_check_warn_keeps_quiz_and_logs(caplog) -> None:
    text = "Quiz\n1. Capital?\na) Berlin\nb) Paris\nAnswer: Madrid"
    caplog.set_level(logging.WARNING, logger="quizmaster")

    parsed = parse_quiz_text(text, answer_check="warn")

    assert parsed.quiz.questions[0].correct_answer == "Madrid"
    mismatch = parsed.of_kind("answer-mismatch")
    assert len(mismatch) == 1
    assert mismatch[0].line_number == 5
    assert any("does not match" in r.getMessage() for r in caplog.records)


def test_answer_check_ignore_accepts_silently() -> None:
    text = "Quiz\n1. Capital?\na) Berlin\nb) Paris\nAnswer: Madrid"

    parsed = parse_quiz_text(text, answer_check="ignore")

    assert parsed.diagnostics == ()


def test_ambiguous_answer_is_a_mismatch() -> None:
    text = "Quiz\n1. Pick?\na) Same\nb) same\nAnswer: Same"

    with pytest.raises(ParseError):
        parse_quiz_text(text)


def test_unknown_answer_check_mode() -> None:
    with pytest.raises(ValueError):
        parse_quiz_text(CAPITALS_TEXT, answer_check="strict")  # type: ignore


def test_edit_reuses_existing_id_and_refreshes_timestamp() -> None:
    existing = make_quiz("quiz-edit", created_at="2000-01-01T00:00:00+00:00")

    quiz = parse_quiz(CAPITALS_TEXT, existing=existing)

    assert quiz.id == "quiz-edit"
    assert quiz.created_at != existing.created_at


def test_new_quiz_gets_fresh_id() -> None:
    first = parse_quiz(CAPITALS_TEXT)
    second = parse_quiz(CAPITALS_TEXT)
    assert first.id != second.id


def test_render_quiz_text_parses_back() -> None:
    original = parse_quiz(FIVE_QUESTION_TEXT)

    text = render_quiz_text(original)
    again = parse_quiz(text, existing=original)

    assert text.startswith("General Knowledge\n\n1. What is the capital")
    assert "**Answer: Paris**" in text
    assert again.id == original.id
    assert [q.text for q in again.questions] == [
        q.text for q in original.questions
    ]
    assert [q.options for q in again.questions] == [
        q.options for q in original.questions
    ]
    assert [q.correct_answer for q in again.questions] == [
        q.correct_answer for q in original.questions
    ]


def test_render_relabels_unlabelled_options() -> None:
    quiz = Quiz(
        id="generated",
        title="Sample Quiz",
        questions=(
            Question(
                id="g1",
                text="Generated?",
                options=("Alpha", "Beta", "1. Gamma"),
                correct_answer="Beta",
            ),
        ),
    )

    text = render_quiz_text(quiz)

    assert "a) Alpha\nb) Beta\nc) Gamma" in text
    reparsed = parse_quiz(text)
    assert reparsed.questions[0].correct_answer == "Beta"
