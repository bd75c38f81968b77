from __future__ import annotations

import io
import json

import pytest
from rich.console import Console

from quizmaster.quizzer import _main
from quizmaster.quizzer.config import CONFIG_FILENAME

from fixtures import CAPITALS_TEXT, FIVE_QUESTION_TEXT, FakeChatClient


def recording_console() -> Console:
    return Console(record=True, width=120, force_terminal=True)


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def run(workspace, argv, **kwargs) -> tuple[int, str]:
    console = kwargs.pop("console", None) or recording_console()
    code = _main.main(argv, console=console, env=workspace.env(), **kwargs)
    return code, console.export_text()


def create_quiz(workspace, text: str = FIVE_QUESTION_TEXT) -> str:
    source = workspace.write("input.txt", text)
    code, _ = run(workspace, ["create", str(source)])
    assert code == 0
    return workspace.stored_quizzes()[0]["id"]


def test_create_from_file_saves_quiz(workspace) -> None:
    source = workspace.write("input.txt", FIVE_QUESTION_TEXT)

    code, output = run(workspace, ["create", str(source)])

    assert code == 0
    assert "Created quiz General Knowledge (5 questions)" in output
    stored = workspace.stored_quizzes()
    assert len(stored) == 1
    assert stored[0]["title"] == "General Knowledge"


def test_create_from_stdin(workspace, monkeypatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(CAPITALS_TEXT))

    code, _ = run(workspace, ["create"])

    assert code == 0
    assert workspace.stored_quizzes()[0]["title"] == "Capitals"


def test_create_reports_parse_error(workspace) -> None:
    source = workspace.write("short.txt", "Title\n1. Stem?")

    code, output = run(workspace, ["create", str(source)])

    assert code == 1
    assert "Text is too short to be a quiz." in output
    assert workspace.stored_quizzes() == []


def test_create_warns_on_dropped_lines(workspace) -> None:
    source = workspace.write(
        "input.txt", CAPITALS_TEXT + "\nAnswer: nobody asked\n"
    )

    code, output = run(workspace, ["create", str(source)])

    assert code == 0
    assert "warning line 7: orphan-answer" in output


def test_create_answer_check_flag_overrides_config(workspace) -> None:
    text = "Quiz\n1. Capital?\na) Berlin\nb) Paris\nAnswer: Madrid"
    source = workspace.write("input.txt", text)

    rejected, _ = run(workspace, ["create", str(source)])
    accepted, output = run(
        workspace, ["create", str(source), "--answer-check", "warn"]
    )

    assert rejected == 1
    assert accepted == 0
    assert "answer-mismatch" in output
    assert len(workspace.stored_quizzes()) == 1


def test_list_empty_and_populated(workspace) -> None:
    code, output = run(workspace, ["list"])
    assert code == 0
    assert "No quizzes yet" in output

    quiz_id = create_quiz(workspace)
    code, output = run(workspace, ["list"])

    assert code == 0
    assert "Available Quizzes" in output
    assert "General Knowledge" in output
    assert quiz_id[:8] in output


def test_show_prints_answers(workspace) -> None:
    quiz_id = create_quiz(workspace)

    code, output = run(workspace, ["show", quiz_id[:6]])

    assert code == 0
    assert "What is the capital of France?" in output
    assert "Answer: Paris" in output


def test_bracketed_quiz_text_is_printed_verbatim(workspace) -> None:
    text = (
        "Arrays [basics]\n\n1. What does arr[i] return?\n"
        "a) The element at [i]\nb) Nothing [/x]\n"
        "**Answer: a) The element at [i]**"
    )
    quiz_id = create_quiz(workspace, text)

    code, output = run(workspace, ["show", quiz_id])

    assert code == 0
    assert "Arrays [basics]" in output
    assert "1. What does arr[i] return?" in output
    assert "b) Nothing [/x]" in output
    assert "Answer: The element at [i]" in output

    code, output = run(workspace, ["list"])
    assert code == 0
    assert "Arrays [basics]" in output


def test_unknown_quiz_id(workspace) -> None:
    code, output = run(workspace, ["show", "does-not-exist"])

    assert code == 1
    assert "no quiz matches 'does-not-exist'" in output


def test_edit_exports_text(workspace, capsys) -> None:
    quiz_id = create_quiz(workspace)
    capsys.readouterr()

    code, _ = run(workspace, ["edit", quiz_id])

    exported = capsys.readouterr().out
    assert code == 0
    assert exported.startswith("General Knowledge\n\n1. What is the capital")
    assert "**Answer: Mars**" in exported


def test_edit_from_file_keeps_id(workspace) -> None:
    quiz_id = create_quiz(workspace)
    edited = workspace.write("edited.txt", CAPITALS_TEXT)

    code, output = run(workspace, ["edit", quiz_id, "--file", str(edited)])

    assert code == 0
    assert "Updated quiz Capitals" in output
    stored = workspace.stored_quizzes()
    assert [item["id"] for item in stored] == [quiz_id]
    assert stored[0]["title"] == "Capitals"


def test_delete_with_confirmation(workspace) -> None:
    quiz_id = create_quiz(workspace)

    code, output = run(
        workspace,
        ["delete", quiz_id],
        input_provider=make_provider(["n"]),
    )
    assert code == 1
    assert "Aborted." in output
    assert len(workspace.stored_quizzes()) == 1

    code, output = run(
        workspace,
        ["delete", quiz_id],
        input_provider=make_provider(["yes"]),
    )
    assert code == 0
    assert workspace.stored_quizzes() == []


def test_delete_yes_skips_prompt(workspace) -> None:
    quiz_id = create_quiz(workspace)

    def provider() -> str:
        raise AssertionError("prompt should not be shown")

    code, _ = run(
        workspace, ["delete", quiz_id, "--yes"], input_provider=provider
    )

    assert code == 0
    assert workspace.stored_quizzes() == []


def test_take_submits_and_prints_stats(workspace) -> None:
    quiz_id = create_quiz(workspace)

    code, output = run(
        workspace,
        ["take", quiz_id, "--seed", "4"],
        input_provider=make_provider(["submit"]),
    )

    assert code == 0
    assert "You scored 0 out of 5 (0%)" in output
    assert "Keep practicing!" in output
    assert "Session Stats" in output
    assert "Quizzes taken" in output


def test_take_quit_skips_remaining_quizzes(workspace) -> None:
    quiz_id = create_quiz(workspace)

    code, output = run(
        workspace,
        ["take", quiz_id, quiz_id],
        input_provider=make_provider(["q"]),
    )

    assert code == 0
    assert output.count("Ending session without submission.") == 1
    assert "No quizzes taken yet in this session." in output


def test_generate_saves_quiz(workspace, fake_client) -> None:
    fake_client.queue_json(
        {
            "title": "Moon Facts",
            "questions": [
                {
                    "text": "What orbits Earth?",
                    "options": ["Moon", "Mars"],
                    "correctAnswer": "Moon",
                }
            ],
        }
    )

    code, output = run(
        workspace,
        ["generate", "the", "moon", "--model", "cli-model"],
        client=fake_client,
    )

    assert code == 0
    assert "Generated quiz Moon Facts (1 questions)" in output
    assert fake_client.last_call["model"] == "cli-model"
    assert workspace.stored_quizzes()[0]["description"] == ""


def test_generate_failure_keeps_collection(workspace) -> None:
    client = FakeChatClient(error=TimeoutError("slow"))

    code, output = run(workspace, ["generate", "moon"], client=client)

    assert code == 1
    assert "Failed to generate quiz" in output
    assert workspace.stored_quizzes() == []


def test_config_init_writes_template(workspace) -> None:
    code, output = run(workspace, ["config", "init"])

    target = workspace.home / "config" / CONFIG_FILENAME
    assert code == 0
    assert target.exists()
    assert "Wrote quizmaster config" in output

    code, output = run(workspace, ["config", "init"])
    assert code == 1
    assert "already exists" in output


def test_invalid_config_exits_with_usage_error(workspace) -> None:
    workspace.write_config("[storage]\nbogus = 1\n")

    with pytest.raises(SystemExit) as excinfo:
        run(workspace, ["list"])

    assert excinfo.value.code == 2


def test_commands_write_json_logs(workspace) -> None:
    create_quiz(workspace)

    lines = workspace.log_file.read_text(encoding="utf-8").splitlines()
    messages = [json.loads(line)["message"] for line in lines]
    assert "Parsed quiz text" in messages
