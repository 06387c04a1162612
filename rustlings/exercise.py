"""Exercise descriptions, compilation, running and completion state."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .ui import no_emoji

__all__ = [
    "Mode",
    "ContextLine",
    "State",
    "ExerciseOutput",
    "CompilationError",
    "ExerciseRunError",
    "Exercise",
    "CompiledExercise",
    "temp_file",
    "clean",
    "parse_exercise_list",
    "load_exercise_list",
]

RUSTC_COLOR_ARGS = ("--color", "always")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"

_CARGO_TOML_TEMPLATE = """[package]
name = "{name}"
version = "0.0.1"
edition = "2018"
[[bin]]
name = "{name}"
path = "{name}.rs\""""


def temp_file() -> str:
    """Return a binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_ThreadId{threading.get_ident()}"


def clean() -> None:
    """Remove the compiled binary, ignoring any error."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state: done when there is no pending context."""

    context: tuple[ContextLine, ...] = ()

    @property
    def done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a command."""

    stdout: str
    stderr: str


class CompilationError(Exception):
    """Compiling an exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


class ExerciseRunError(Exception):
    """Running a compiled exercise exited unsuccessfully."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


def _output_of(completed: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(completed.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(completed.stderr or b"").decode("utf-8", errors="replace"),
    )


def _lines(source: str) -> list[str]:
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def _rustc(self, *extra: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["rustc", *extra, str(self.path), "-o", temp_file(), *RUSTC_COLOR_ARGS],
            capture_output=True,
        )

    def _clippy(self) -> subprocess.CompletedProcess:
        message = (
            "Failed to write Clippy Cargo.toml file."
            if no_emoji()
            else "Failed to write 📎 Clippy 📎 Cargo.toml file."
        )
        try:
            Path(CLIPPY_CARGO_TOML_PATH).write_text(
                _CARGO_TOML_TEMPLATE.format(name=self.name), encoding="utf-8"
            )
        except OSError as exc:
            raise RuntimeError(message) from exc
        # Build a binary too so clippy exercises can be run; a failure here
        # shows up again in the clippy pass below.
        self._rustc()
        # A clean is needed for clippy to report every lint.
        subprocess.run(
            ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS],
            capture_output=True,
        )
        return subprocess.run(
            [
                "cargo",
                "clippy",
                "--manifest-path",
                CLIPPY_CARGO_TOML_PATH,
                *RUSTC_COLOR_ARGS,
                "--",
                "-D",
                "warnings",
            ],
            capture_output=True,
        )

    def compile(self) -> CompiledExercise:
        """Compile the exercise; raise CompilationError on failure."""
        if self.mode is Mode.COMPILE:
            completed = self._rustc()
        elif self.mode is Mode.TEST:
            completed = self._rustc("--test")
        else:
            completed = self._clippy()

        if completed.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompilationError(_output_of(completed))

    def state(self) -> State:
        """Return the pending context around the marker, or a done state."""
        source = self.path.read_bytes().decode("utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return State()

        lines = _lines(source)
        matched = next(
            (index for index, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise RuntimeError("This should not happen at all")

        low = max(matched - CONTEXT, 0)
        high = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=index + 1, important=index == matched)
                for index, line in enumerate(lines)
                if low <= index <= high
            )
        )

    def looks_done(self) -> bool:
        """Whether the marker comment has been removed."""
        return self.state().done


class CompiledExercise:
    """A compiled exercise; the binary is removed on close."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        """Run the binary; raise ExerciseRunError if it fails."""
        arg = "--show-output" if self.exercise.mode is Mode.TEST else ""
        completed = subprocess.run([temp_file(), arg], capture_output=True)
        output = _output_of(completed)
        if completed.returncode != 0:
            raise ExerciseRunError(output)
        return output

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def parse_exercise_list(text: str) -> list[Exercise]:
    """Parse the exercise list from info.toml content."""
    data = tomllib.loads(text)
    try:
        entries = data["exercises"]
    except KeyError:
        raise ValueError("missing field `exercises`") from None
    exercises = []
    for entry in entries:
        missing = [key for key in ("name", "path", "mode", "hint") if key not in entry]
        if missing:
            raise ValueError(f"missing field `{missing[0]}`")
        try:
            mode = Mode(entry["mode"])
        except ValueError:
            raise ValueError(f"unknown mode `{entry['mode']}`") from None
        exercises.append(
            Exercise(
                name=str(entry["name"]),
                path=Path(entry["path"]),
                mode=mode,
                hint=str(entry["hint"]),
            )
        )
    return exercises


def load_exercise_list(path: str | os.PathLike) -> list[Exercise]:
    """Read and parse an info.toml file."""
    return parse_exercise_list(Path(path).read_text(encoding="utf-8"))