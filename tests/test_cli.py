import io
import subprocess
import sys
from pathlib import Path

import pytest

from rustlings.cli import (
    ExerciseNotFound,
    build_parser,
    find_exercise,
    list_exercises,
    main,
    rustc_exists,
    spawn_watch_shell,
    watch,
)
from rustlings.exercise import Exercise, Mode

PENDING_SOURCE = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED_SOURCE = "// fake_exercise\n\nfn main() {\n\n}\n"

STATE_INFO = """
[[exercises]]
name = "pending_exercise"
path = "pending_exercise.rs"
mode = "compile"
hint = ""

[[exercises]]
name = "finished_exercise"
path = "finished_exercise.rs"
mode = "compile"
hint = ""
"""

FAILURE_INFO = """
[[exercises]]
name = "compFailure"
path = "compFailure.rs"
mode = "compile"
hint = ""

[[exercises]]
name = "testFailure"
path = "testFailure.rs"
mode = "test"
hint = "Hello!"
"""


@pytest.fixture
def rustc_present(monkeypatch):
    def fake_run(cmd, *args, **kwargs):
        return subprocess.CompletedProcess(cmd, 0)

    monkeypatch.setattr(subprocess, "run", fake_run)


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    (tmp_path / "pending_exercise.rs").write_text(PENDING_SOURCE)
    (tmp_path / "finished_exercise.rs").write_text(FINISHED_SOURCE)
    (tmp_path / "info.toml").write_text(STATE_INFO)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def failure_dir(tmp_path, monkeypatch):
    (tmp_path / "compFailure.rs").write_text("fn main() {\n    let\n}\n")
    (tmp_path / "testFailure.rs").write_text("#[test]\nfn passing() {\n    asset!(true);\n}\n")
    (tmp_path / "info.toml").write_text(FAILURE_INFO)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _state_exercises():
    return [
        Exercise("pending_exercise", Path("pending_exercise.rs"), Mode.COMPILE, ""),
        Exercise("finished_exercise", Path("finished_exercise.rs"), Mode.COMPILE, ""),
    ]


def test_version_flag(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out == "v4.4.0\n"


def test_short_version_flag(capsys):
    assert main(["-v"]) == 0
    assert capsys.readouterr().out == "v4.4.0\n"


def test_fails_when_in_wrong_dir(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert "Try `cd rustlings/`!" in capsys.readouterr().out


def test_fails_without_rustc(state_dir, monkeypatch, capsys):
    def missing(cmd, *args, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", missing)
    assert main(["list"]) == 1
    assert "We cannot find `rustc`." in capsys.readouterr().out


def test_runs_without_arguments(state_dir, rustc_present, capsys):
    (state_dir / "default_out.txt").write_text("Thanks for installing!")
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "welcome to..." in out
    assert out.endswith("Thanks for installing!\n")


def test_run_single_test_no_filename():
    assert main(["run"]) == 1


def test_parser_reads_list_options():
    args = build_parser().parse_args(["list", "-p", "-f", "abc", "-u"])
    assert (args.command, args.paths, args.names, args.filter, args.unsolved, args.solved) == (
        "list",
        True,
        False,
        "abc",
        True,
        False,
    )


def test_parser_reads_nocapture_before_subcommand():
    args = build_parser().parse_args(["--nocapture", "run", "testSuccess"])
    assert (args.nocapture, args.command, args.name) == (True, "run", "testSuccess")


def test_run_single_test_no_exercise(failure_dir, rustc_present, capsys):
    assert main(["run", "compNoExercise.rs"]) == 1
    assert "No exercise found for 'compNoExercise.rs'!" in capsys.readouterr().out


def test_get_hint_for_single_test(failure_dir, rustc_present, capsys):
    assert main(["hint", "testFailure"]) == 0
    assert capsys.readouterr().out == "Hello!\n"


def test_find_exercise_returns_match():
    exercises = _state_exercises()
    assert find_exercise("finished_exercise", exercises) is exercises[1]


def test_find_exercise_missing_raises():
    with pytest.raises(ExerciseNotFound) as info:
        find_exercise("nope", _state_exercises())
    assert info.value.name == "nope"


def test_list_both_done_and_pending(state_dir, rustc_present, capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Done" in out and "Pending" in out


def test_list_without_pending(state_dir, rustc_present, capsys):
    assert main(["list", "--solved"]) == 0
    out = capsys.readouterr().out
    assert "Pending" not in out
    assert "finished_exercise" in out


def test_list_without_done(state_dir, rustc_present, capsys):
    assert main(["list", "--unsolved"]) == 0
    out = capsys.readouterr().out
    assert "Done" not in out
    assert "pending_exercise" in out


def test_list_exercises_full_table(state_dir):
    lines = list(list_exercises(_state_exercises()))
    assert lines == [
        f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}",
        f"{'pending_exercise':<17}\t{'pending_exercise.rs':<46}\t{'Pending':<7}",
        f"{'finished_exercise':<17}\t{'finished_exercise.rs':<46}\t{'Done':<7}",
        "Progress: You completed 1 / 2 exercises (50.00 %).",
    ]


def test_list_exercises_paths_only(state_dir):
    lines = list(list_exercises(_state_exercises(), paths=True))
    assert lines[:-1] == ["pending_exercise.rs", "finished_exercise.rs"]


def test_list_exercises_names_only(state_dir):
    lines = list(list_exercises(_state_exercises(), names=True))
    assert lines[:-1] == ["pending_exercise", "finished_exercise"]


def test_list_exercises_filter_is_case_insensitive(state_dir):
    lines = list(list_exercises(_state_exercises(), names=True, filter="PEND"))
    assert lines[:-1] == ["pending_exercise"]


def test_list_exercises_comma_separated_filter(state_dir):
    lines = list(list_exercises(_state_exercises(), names=True, filter="pend,fin"))
    assert lines[:-1] == ["pending_exercise", "finished_exercise"]


def test_list_exercises_empty_filter_shows_nothing(state_dir):
    lines = list(list_exercises(_state_exercises(), names=True, filter=""))
    assert lines == ["Progress: You completed 1 / 2 exercises (50.00 %)."]


def test_list_exercises_empty_list():
    assert list(list_exercises([], names=True)) == [
        "Progress: You completed 0 / 0 exercises (NaN %)."
    ]


def test_rustc_exists_true(monkeypatch):
    seen = []

    def fake_run(cmd, *args, **kwargs):
        seen.append(cmd)
        return subprocess.CompletedProcess(cmd, 0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert rustc_exists() is True
    assert seen == [["rustc", "--version"]]


def test_rustc_exists_false_on_failure(monkeypatch):
    monkeypatch.setattr(
        subprocess, "run", lambda cmd, *a, **k: subprocess.CompletedProcess(cmd, 1)
    )
    assert rustc_exists() is False


def test_rustc_exists_false_when_missing(monkeypatch):
    def missing(cmd, *args, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", missing)
    assert rustc_exists() is False


def test_watch_shell_answers_commands(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("hint\nclear\nfoo\n"))
    thread = spawn_watch_shell(lambda: "the hint")
    thread.join(timeout=5)
    assert not thread.is_alive()
    out = capsys.readouterr().out
    assert "the hint\n" in out
    assert "\x1b[2J\x1b[1;1H" in out
    assert "unknown command: foo" in out


def test_watch_shell_without_hint(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("hint\n"))
    thread = spawn_watch_shell(lambda: None)
    thread.join(timeout=5)
    out = capsys.readouterr().out
    assert out.startswith("Type 'hint'")
    assert out.count("\n") == 1


def test_watch_requires_exercises_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        watch([], False)


def test_main_watch_reports_missing_directory(tmp_path, monkeypatch, rustc_present, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "info.toml").write_text("exercises = []\n")
    assert main(["watch"]) == 1
    assert "Error: Could not watch your progress." in capsys.readouterr().out


def test_main_watch_all_done(tmp_path, monkeypatch, rustc_present, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "exercises").mkdir()
    (tmp_path / "info.toml").write_text("exercises = []\n")
    assert main(["watch"]) == 0
    assert "You made it to the Fe-nish line!" in capsys.readouterr().out


def test_main_verify_empty_list_succeeds(tmp_path, monkeypatch, rustc_present):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "info.toml").write_text("exercises = []\n")
    assert main(["verify"]) == 0