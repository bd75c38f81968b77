"""``quizmaster`` entry point dispatching to subcommand modules."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Mapping, Optional, Sequence

_QUIZZER = "quizmaster.quizzer._main"
_WORKSPACE = "quizmaster.workspace.cli"


@dataclass(frozen=True)
class CommandSpec:
    """A subcommand and the module whose ``main(argv)`` runs it.

    Quiz commands share one argparse tree, so their own name is passed on
    as the first argument; standalone modules receive only the remainder.
    """

    name: str
    summary: str
    module: str = _QUIZZER
    forward_name: bool = True
    interactive: bool = False

    def argv_for(self, args: Sequence[str]) -> list[str]:
        if self.forward_name:
            return [self.name, *args]
        return list(args)


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        "init",
        "Bootstrap the quizmaster workspace.",
        module=_WORKSPACE,
        forward_name=False,
    ),
    CommandSpec("config", "Write the default quizmaster.toml."),
    CommandSpec("create", "Create a quiz from pasted text."),
    CommandSpec("edit", "Export a quiz as text or replace it from a file."),
    CommandSpec("generate", "Generate a quiz about a topic with AI."),
    CommandSpec("list", "List stored quizzes."),
    CommandSpec("show", "Show a quiz with its answers."),
    CommandSpec("delete", "Delete a stored quiz."),
    CommandSpec(
        "take", "Take quizzes and see session stats.", interactive=True
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    width = max(len(spec.name) for spec in _COMMAND_SPECS)
    rows = ["Available commands:"]
    for spec in _COMMAND_SPECS:
        note = " (interactive)" if spec.interactive else ""
        rows.append(f"  {spec.name:<{width}}  {spec.summary}{note}")
    return "\n".join(rows)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: quizmaster <command> [args...]",
            "Run `quizmaster commands` for the command table or "
            "`quizmaster help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _emit(text: str, *, err: bool = False) -> None:
    stream = sys.stderr if err else sys.stdout
    stream.write(text + "\n")


def _unknown(name: str) -> int:
    _emit(f"Unknown command '{name}'.", err=True)
    _emit(format_command_table(), err=True)
    return 2


def _version() -> str:
    try:
        return metadata.version("quizmaster")
    except metadata.PackageNotFoundError:
        return "unknown"


def _help(args: Sequence[str]) -> int:
    if not args:
        _emit(format_usage())
        return 0
    spec = COMMANDS.get(args[0])
    if spec is None:
        return _unknown(args[0])
    _emit(f"{spec.name}: {spec.summary}")
    _emit(f"Run `quizmaster {spec.name} --help` for command options.")
    return 0


def run_command(spec: CommandSpec, args: Sequence[str]) -> int:
    """Import ``spec.module`` and run its ``main`` with ``args``.

    ``sys.argv`` is swapped for the duration so argparse usage lines read
    ``quizmaster <name>``; ``SystemExit`` becomes a return code.
    """

    entry = getattr(import_module(spec.module), "main")
    saved = sys.argv
    sys.argv = [f"quizmaster {spec.name}", *args]
    try:
        result = entry(spec.argv_for(args))
    except SystemExit as exc:
        return _exit_status(exc.code)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_status(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _emit(str(code), err=True)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _emit(format_usage())
        return 2

    head, *rest = args
    if head in ("-h", "--help"):
        _emit(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        _emit(_version())
        return 0
    if head == "commands":
        _emit(format_command_table())
        return 0
    if head == "help":
        return _help(rest)

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return run_command(spec, rest)


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
