from __future__ import annotations

import pytest

from quizmaster.quizzer.models import (
    Question,
    Quiz,
    QuizResult,
    new_id,
    percent,
)

from fixtures import make_question, make_quiz


def test_new_id_is_unique_hex() -> None:
    ids = {new_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(len(value) == 32 for value in ids)


@pytest.mark.parametrize(
    ("part", "whole", "expected"),
    [
        (0, 5, 0),
        (5, 5, 100),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),
        (3, 0, 0),
    ],
)
def test_percent_rounds_half_up(part: int, whole: int, expected: int) -> None:
    assert percent(part, whole) == expected


def test_quiz_to_dict_and_back() -> None:
    quiz = make_quiz(count=2)
    restored = Quiz.from_dict(quiz.to_dict())
    assert restored == quiz
    assert "description" not in quiz.to_dict()


def test_quiz_description_survives_serialization() -> None:
    quiz = Quiz(
        id="q",
        title="T",
        questions=(make_question("q1"),),
        created_at="2024-01-01T00:00:00+00:00",
        description="About things",
    )
    assert Quiz.from_dict(quiz.to_dict()).description == "About things"


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"id": "x", "title": "T", "questions": "nope", "created_at": "d"},
        {
            "id": 3,
            "title": "T",
            "questions": [
                {
                    "id": "q",
                    "text": "t",
                    "options": ["a"],
                    "correct_answer": "a",
                }
            ],
            "created_at": "d",
        },
        {"id": "x", "title": "T", "questions": [], "created_at": "d"},
        {"id": "x", "title": "T", "questions": [1], "created_at": "d"},
        {"id": "x", "title": "T", "questions": ["q"], "created_at": "d"},
        {
            "id": "x",
            "title": "T",
            "questions": [
                {"id": "q", "text": "t", "options": [], "correct_answer": "a"}
            ],
            "created_at": "d",
        },
        {
            "id": "x",
            "title": "T",
            "questions": [
                {"id": "q", "text": "t", "options": "a", "correct_answer": "a"}
            ],
            "created_at": "d",
        },
    ],
)
def test_quiz_from_dict_rejects_invalid_payloads(payload) -> None:
    with pytest.raises(ValueError):
        Quiz.from_dict(payload)


def test_question_options_are_tuple() -> None:
    question = Question.from_dict(
        {
            "id": "q1",
            "text": "Pick",
            "options": ["a) x", "b) y"],
            "correct_answer": "y",
        }
    )
    assert question.options == ("a) x", "b) y")


def test_quiz_result_percentage_and_perfect() -> None:
    result = QuizResult(
        id="r",
        quiz_id="q",
        quiz_title="T",
        score=4,
        total_questions=4,
        date="2024-01-01",
    )
    assert result.percentage == 100
    assert result.is_perfect
    assert QuizResult.from_dict(result.to_dict()) == result
