from .models import Question, Quiz, QuizResult
from .labels import strip_label, answers_match, find_matching_option
from .parser import (
    ParseDiagnostic,
    ParseError,
    ParsedQuiz,
    parse_quiz,
    parse_quiz_text,
    render_quiz_text,
)
from .session import (
    QuizSessionState,
    SessionQuestion,
    shuffle_items,
    start_session,
)
from .generator import (
    GenerationError,
    GenerationSettings,
    generate_quiz,
)
from .storage import JsonKeyValueFile, PersistenceError, QuizStore
from .library import QuizLibrary
from .stats import ResultLog, SessionStats, summarize_results

__all__ = [
    "Question",
    "Quiz",
    "QuizResult",
    "strip_label",
    "answers_match",
    "find_matching_option",
    "ParseDiagnostic",
    "ParseError",
    "ParsedQuiz",
    "parse_quiz",
    "parse_quiz_text",
    "render_quiz_text",
    "QuizSessionState",
    "SessionQuestion",
    "shuffle_items",
    "start_session",
    "GenerationError",
    "GenerationSettings",
    "generate_quiz",
    "JsonKeyValueFile",
    "PersistenceError",
    "QuizStore",
    "QuizLibrary",
    "ResultLog",
    "SessionStats",
    "summarize_results",
]
