import argparse
import logging
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ..core.logging import configure_logger
from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    LoadResult,
    QuizmasterConfigError,
    load_config,
    write_template,
)
from .generator import GenerationError, generate_quiz
from .library import QuizLibrary
from .models import Quiz
from .parser import (
    ANSWER_CHECK_MODES,
    ParseDiagnostic,
    ParseError,
    parse_quiz_text,
    render_quiz_text,
)
from .session import start_session
from .stats import ResultLog, summarize_results
from .storage import QuizStore
from .view import render_statistics, run_quiz_session

InputProvider = Callable[[], str]


@dataclass
class _Context:
    load: LoadResult
    logger: logging.Logger
    library: QuizLibrary
    console: Console
    input_provider: InputProvider
    client: Any = None


def _read_source(path: Optional[Path]) -> str:
    if path is None or str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8", errors="replace")


def _report_diagnostics(
    console: Console, diagnostics: Sequence[ParseDiagnostic]
) -> None:
    for item in diagnostics:
        console.print(
            f"[yellow]warning[/yellow] {escape(item.describe())}"
        )


def _find_quiz(ctx: _Context, quiz_id: str) -> Optional[Quiz]:
    quiz = ctx.library.get(quiz_id)
    if quiz is None:
        ctx.console.print(
            f"[red]Error:[/red] no quiz matches '{escape(quiz_id)}'."
        )
    return quiz


def _cmd_create(ctx: _Context, args: argparse.Namespace) -> int:
    try:
        text = _read_source(args.file)
    except OSError as exc:
        ctx.console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 1
    return _save_parsed(ctx, text, existing=None)


def _save_parsed(
    ctx: _Context, text: str, *, existing: Optional[Quiz]
) -> int:
    try:
        parsed = parse_quiz_text(
            text,
            existing=existing,
            answer_check=ctx.load.config.answer_check,
            logger=ctx.logger,
        )
    except ParseError as exc:
        _report_diagnostics(ctx.console, exc.diagnostics)
        ctx.console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 1
    _report_diagnostics(ctx.console, parsed.diagnostics)
    replaced = ctx.library.upsert(parsed.quiz)
    verb = "Updated" if replaced else "Created"
    ctx.console.print(
        f"{verb} quiz [bold]{escape(parsed.quiz.title)}[/] "
        f"({len(parsed.quiz.questions)} questions) id={parsed.quiz.id}"
    )
    return 0


def _cmd_edit(ctx: _Context, args: argparse.Namespace) -> int:
    quiz = _find_quiz(ctx, args.quiz_id)
    if quiz is None:
        return 1
    if args.file is None:
        sys.stdout.write(render_quiz_text(quiz))
        return 0
    try:
        text = _read_source(args.file)
    except OSError as exc:
        ctx.console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 1
    return _save_parsed(ctx, text, existing=quiz)


def _cmd_generate(ctx: _Context, args: argparse.Namespace) -> int:
    topic = " ".join(args.topic)
    try:
        quiz = generate_quiz(
            topic,
            client=ctx.client,
            settings=ctx.load.config.generation,
            logger=ctx.logger,
        )
    except GenerationError as exc:
        ctx.console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 1
    ctx.library.upsert(quiz)
    ctx.console.print(
        f"Generated quiz [bold]{escape(quiz.title)}[/] "
        f"({len(quiz.questions)} questions) id={quiz.id}"
    )
    return 0


def _cmd_list(ctx: _Context, args: argparse.Namespace) -> int:
    quizzes = ctx.library.quizzes
    if not quizzes:
        ctx.console.print(
            "No quizzes yet. Create one with 'quizmaster create'."
        )
        return 0
    table = Table(title="Available Quizzes", box=box.SIMPLE)
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Questions", justify="right")
    table.add_column("Created")
    for quiz in quizzes:
        table.add_row(
            quiz.id[:8],
            Text(quiz.title),
            str(len(quiz.questions)),
            quiz.created_at[:10],
        )
    ctx.console.print(table)
    return 0


def _cmd_show(ctx: _Context, args: argparse.Namespace) -> int:
    quiz = _find_quiz(ctx, args.quiz_id)
    if quiz is None:
        return 1
    ctx.console.rule(Text(quiz.title))
    if quiz.description:
        ctx.console.print(Text(quiz.description, style="dim"))
    for number, question in enumerate(quiz.questions, start=1):
        ctx.console.print()
        ctx.console.print(Text(f"{number}. {question.text}", style="bold"))
        for option in question.options:
            ctx.console.print(Text(f"   {option}"))
        ctx.console.print(
            Text.assemble(
                "   ", ("Answer:", "green"), f" {question.correct_answer}"
            )
        )
    return 0


def _cmd_delete(ctx: _Context, args: argparse.Namespace) -> int:
    quiz = _find_quiz(ctx, args.quiz_id)
    if quiz is None:
        return 1
    if not args.yes:
        ctx.console.print(f"Delete quiz '{escape(quiz.title)}'? \\[y/N]")
        try:
            reply = ctx.input_provider()
        except (EOFError, KeyboardInterrupt):
            reply = ""
        if reply.strip().lower() not in {"y", "yes"}:
            ctx.console.print("Aborted.")
            return 1
    ctx.library.delete(quiz.id)
    ctx.console.print(f"Deleted quiz '{escape(quiz.title)}'.")
    return 0


def _cmd_take(ctx: _Context, args: argparse.Namespace) -> int:
    quizzes = []
    for quiz_id in args.quiz_ids:
        quiz = _find_quiz(ctx, quiz_id)
        if quiz is None:
            return 1
        quizzes.append(quiz)

    rng = random.Random(args.seed)
    results = ResultLog()
    for quiz in quizzes:
        if not quiz.questions:
            ctx.console.print(
                f"Quiz '{escape(quiz.title)}' has no questions."
            )
            continue
        state = start_session(quiz, rng=rng)
        outcome = run_quiz_session(state, ctx.console, ctx.input_provider)
        if outcome.result is not None:
            results.record(outcome.result)
        elif outcome.exit_action == "quit":
            break

    render_statistics(ctx.console, summarize_results(results))
    return 0


def _cmd_config_init(
    args: argparse.Namespace,
    console: Console,
    env: Optional[Mapping[str, str]],
) -> int:
    if args.path is not None:
        target = args.path.expanduser()
    else:
        try:
            loaded = load_config(env=env, workspace_path=args.workspace)
        except QuizmasterConfigError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            return 1
        target = loaded.layout.path_for("config") / CONFIG_FILENAME
    try:
        written = write_template(target, overwrite=args.force)
    except QuizmasterConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 1
    console.print(f"Wrote quizmaster config to {escape(str(written))}")
    return 0


_HANDLERS = {
    "create": _cmd_create,
    "edit": _cmd_edit,
    "generate": _cmd_generate,
    "list": _cmd_list,
    "show": _cmd_show,
    "delete": _cmd_delete,
    "take": _cmd_take,
}


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, help="Path to quizmaster.toml")
    common.add_argument(
        "--workspace", type=Path, help="Override the workspace root"
    )
    common.add_argument("--log-level", help="Log level for the log file")
    common.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Also log to stderr",
    )
    return common


def build_arg_parser() -> argparse.ArgumentParser:
    common = _common_options()
    p = argparse.ArgumentParser(
        prog="quizmaster",
        description="Turn pasted text or a topic into quizzes and take them",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_config = sub.add_parser("config", help="Manage quizmaster.toml")
    config_sub = sp_config.add_subparsers(dest="action", required=True)
    sp_c_init = config_sub.add_parser(
        "init", help="Write the default quizmaster.toml"
    )
    sp_c_init.add_argument("--path", type=Path)
    sp_c_init.add_argument("--workspace", type=Path)
    sp_c_init.add_argument("--force", action="store_true")

    sp_create = sub.add_parser(
        "create", parents=[common], help="Create a quiz from pasted text"
    )
    sp_create.add_argument(
        "file", nargs="?", type=Path, help="Text file ('-' or omit for stdin)"
    )
    sp_create.add_argument("--answer-check", choices=ANSWER_CHECK_MODES)

    sp_edit = sub.add_parser(
        "edit",
        parents=[common],
        help="Export a quiz as text, or replace it from edited text",
    )
    sp_edit.add_argument("quiz_id")
    sp_edit.add_argument(
        "--file", type=Path, help="Edited text file ('-' for stdin)"
    )
    sp_edit.add_argument("--answer-check", choices=ANSWER_CHECK_MODES)

    sp_gen = sub.add_parser(
        "generate", parents=[common], help="Generate a quiz with AI"
    )
    sp_gen.add_argument("topic", nargs="+")
    sp_gen.add_argument("--model")

    sub.add_parser("list", parents=[common], help="List stored quizzes")

    sp_show = sub.add_parser(
        "show", parents=[common], help="Show a quiz with its answers"
    )
    sp_show.add_argument("quiz_id")

    sp_delete = sub.add_parser(
        "delete", parents=[common], help="Delete a quiz"
    )
    sp_delete.add_argument("quiz_id")
    sp_delete.add_argument("--yes", action="store_true")

    sp_take = sub.add_parser(
        "take", parents=[common], help="Take one or more quizzes"
    )
    sp_take.add_argument("quiz_ids", nargs="+")
    sp_take.add_argument("--seed", type=int)
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
    client: Any = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    if args.command == "config":
        return _cmd_config_init(args, console, env)

    overrides = ConfigOverrides(
        model=getattr(args, "model", None),
        answer_check=getattr(args, "answer_check", None),
        log_level=args.log_level,
        verbose=args.verbose,
    )
    try:
        loaded = load_config(
            config_path=args.config,
            overrides=overrides,
            env=env,
            workspace_path=args.workspace,
        )
    except QuizmasterConfigError as exc:
        parser.error(str(exc))

    logger, _ = configure_logger(
        "quizmaster",
        log_dir=loaded.layout.path_for("logs"),
        level=loaded.config.log_level,
        verbose=loaded.config.verbose,
    )
    logger.debug("quizmaster command invoked", extra={"cmd": args.command})

    ctx = _Context(
        load=loaded,
        logger=logger,
        library=QuizLibrary(
            QuizStore.at(loaded.config.quiz_file, logger=logger)
        ),
        console=console,
        input_provider=input_provider or (lambda: console.input("> ")),
        client=client,
    )
    return _HANDLERS[args.command](ctx, args)
