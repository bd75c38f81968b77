"""Shared testing fixtures for the quizmaster test suite."""

from .openai import FakeChatClient  # noqa: F401
from .quizzes import (  # noqa: F401
    CAPITALS_TEXT,
    FIVE_QUESTION_TEXT,
    make_question,
    make_quiz,
)
from .workspace import QuizWorkspace  # noqa: F401

__all__ = [
    "CAPITALS_TEXT",
    "FIVE_QUESTION_TEXT",
    "FakeChatClient",
    "QuizWorkspace",
    "make_question",
    "make_quiz",
]
