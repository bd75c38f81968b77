"""Rich-powered terminal presentation for quiz attempts.

The loop renders one question at a time, reads commands from an injectable
``input_provider`` and forwards selections and submission to the
:class:`QuizSessionState`. It owns no scoring logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import QuizResult
from .session import QuizSessionState, SessionQuestion
from .stats import SessionStats

InputProvider = Callable[[], str]
ExitAction = Literal["submitted", "quit"]


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "prev", "submit", "quit", "select"]
    choice: Optional[str] = None


@dataclass(frozen=True)
class QuizSessionOutcome:
    state: QuizSessionState
    exit_action: ExitAction
    result: Optional[QuizResult] = None


def option_key(index: int) -> str:
    return chr(ord("A") + index)


def option_for_key(question: SessionQuestion, key: str) -> Optional[str]:
    index = ord(key.upper()) - ord("A")
    if 0 <= index < len(question.options):
        return question.options[index]
    return None


def grade_message(percentage: int) -> str:
    if percentage >= 90:
        return "Outstanding!"
    if percentage >= 70:
        return "Great job!"
    if percentage < 50:
        return "Keep practicing!"
    return "Good effort!"


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if lowered in {"s", "submit"}:
        return SessionCommand("submit")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if len(text) == 1 and text.isalpha():
        return SessionCommand("select", text.upper())
    return None


def run_quiz_session(
    state: QuizSessionState,
    console: Console,
    input_provider: InputProvider,
) -> QuizSessionOutcome:
    """Drive ``state`` interactively until submit or quit."""

    index = 0
    while True:
        question = state.questions[index]
        _render_question(console, state, index)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return QuizSessionOutcome(state, "quit")
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "select" and command.choice:
            option = option_for_key(question, command.choice)
            if option is not None and state.select(question.id, option):
                console.print(f"Selected [bold]{command.choice}[/].")
            else:
                console.print(
                    f"[red]'{command.choice}' is not a valid choice for "
                    "this question.[/red]"
                )
        elif command.type == "next":
            index = min(index + 1, state.total_questions - 1)
        elif command.type == "prev":
            index = max(index - 1, 0)
        elif command.type == "quit":
            console.print(
                "\n[bold yellow]Ending session without submission.[/]"
            )
            return QuizSessionOutcome(state, "quit")
        elif command.type == "submit":
            result = state.submit()
            render_result(console, state)
            return QuizSessionOutcome(state, "submitted", result)


def _render_question(
    console: Console, state: QuizSessionState, index: int
) -> None:
    question = state.questions[index]
    header = Text.assemble(
        (f"Question {index + 1}", "bold cyan"),
        (f" / {state.total_questions}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.text, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    selected = state.selected_for(question.id)
    for idx, option in enumerate(question.options):
        chosen = option == selected
        row = Text("• " if chosen else "  ")
        row.append(option, style="bold green" if chosen else "")
        table.add_row(option_key(idx), row)
    console.print(table)

    keys = ", ".join(option_key(i) for i in range(len(question.options)))
    console.print(
        Text(
            f"{state.answered_count()} / {state.total_questions} answered | "
            f"Commands: options [{keys}], n (next), p (prev), submit, quit",
            style="dim",
        )
    )


def render_result(console: Console, state: QuizSessionState) -> None:
    """Print the score banner and a per-question review."""

    percentage = state.percentage()
    console.print()
    console.print(
        Panel(
            Text.assemble(
                (grade_message(percentage), "bold"),
                "\n",
                f"You scored {state.score} out of {state.total_questions}"
                f" ({percentage}%)",
            ),
            title=Text(state.quiz.title),
            border_style="green" if percentage >= 70 else "yellow",
        )
    )

    review = Table(title="Review", box=box.SIMPLE, expand=True)
    review.add_column("#", justify="right")
    review.add_column("Question", overflow="fold")
    review.add_column("Your answer")
    review.add_column("Correct answer")
    review.add_column("Result", justify="center")
    for idx, question in enumerate(state.questions, start=1):
        correct = state.is_correct(question)
        review.add_row(
            str(idx),
            Text(question.text),
            Text(state.selected_for(question.id) or "—"),
            Text(question.correct_answer),
            "✅" if correct else "❌",
        )
    console.print(review)


def render_statistics(console: Console, stats: SessionStats) -> None:
    """Print the dashboard for results collected in this process."""

    console.print()
    console.rule(Text("Session Stats", style="bold magenta"))
    if stats.total_taken == 0:
        console.print("No quizzes taken yet in this session.")
        return

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Quizzes taken", str(stats.total_taken))
    overview.add_row("Average accuracy", f"{stats.overall_accuracy}%")
    overview.add_row("Perfect scores", str(stats.perfect_scores))
    console.print(overview)

    history = Table(title="History", box=box.SIMPLE)
    history.add_column("Quiz")
    history.add_column("Score", justify="right")
    for entry in stats.history:
        history.add_row(Text(entry.label), f"{entry.percentage}%")
    console.print(history)
