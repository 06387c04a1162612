"""Checking exercises in order and prompting for completion."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from enum import Enum, auto

from rich.console import Console
from rich.status import Status
from rich.text import Text

from .exercise import (
    CompilationError,
    CompiledExercise,
    Exercise,
    ExerciseRunError,
    Mode,
)
from .ui import no_emoji, success, warn

__all__ = [
    "RunMode",
    "VerificationFailed",
    "verify",
    "test",
    "prompt_for_completion",
    "separator",
]


class RunMode(Enum):
    """Whether a passing exercise should prompt for completion."""

    INTERACTIVE = auto()
    NON_INTERACTIVE = auto()


class VerificationFailed(Exception):
    """An exercise did not compile, did not pass, or is not marked done."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(str(exercise))
        self.exercise = exercise


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True, emoji=False)


@contextmanager
def _spinner(message: str) -> Iterator[Status]:
    with _console().status(message) as status:
        yield status


def _report_compile_failure(exercise: Exercise, error: CompilationError) -> None:
    warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
    print(error.output.stderr)


def _compile_only(exercise: Exercise) -> bool:
    try:
        with _spinner(f"Compiling {exercise}..."):
            with exercise.compile():
                pass
    except CompilationError as exc:
        _report_compile_failure(exercise, exc)
        raise VerificationFailed(exercise) from exc

    success(f"Successfully compiled {exercise}!")
    return prompt_for_completion(exercise, None)


def _compile_and_run_interactively(exercise: Exercise) -> bool:
    try:
        with _spinner(f"Compiling {exercise}...") as status:
            compiled: CompiledExercise = exercise.compile()
            with compiled:
                status.update(f"Running {exercise}...")
                output = compiled.run()
    except CompilationError as exc:
        _report_compile_failure(exercise, exc)
        raise VerificationFailed(exercise) from exc
    except ExerciseRunError as exc:
        warn(f"Ran {exercise} with errors")
        print(exc.output.stdout)
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc

    success(f"Successfully ran {exercise}!")
    return prompt_for_completion(exercise, output.stdout)


def _compile_and_test(exercise: Exercise, run_mode: RunMode, verbose: bool) -> bool:
    try:
        with _spinner(f"Testing {exercise}..."):
            with exercise.compile() as compiled:
                output = compiled.run()
    except CompilationError as exc:
        _report_compile_failure(exercise, exc)
        raise VerificationFailed(exercise) from exc
    except ExerciseRunError as exc:
        warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stdout)
        raise VerificationFailed(exercise) from exc

    if verbose:
        print(output.stdout)
    success(f"Successfully tested {exercise}")
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None)
    return True


def verify(exercises: Iterable[Exercise], verbose: bool = False) -> None:
    """Check exercises in order; raise VerificationFailed at the first one not done."""
    for exercise in exercises:
        if exercise.mode is Mode.TEST:
            finished = _compile_and_test(exercise, RunMode.INTERACTIVE, verbose)
        elif exercise.mode is Mode.COMPILE:
            finished = _compile_and_run_interactively(exercise)
        else:
            finished = _compile_only(exercise)
        if not finished:
            raise VerificationFailed(exercise)


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run an exercise's tests without prompting."""
    _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose)


def separator() -> Text:
    """The bold rule framing an exercise's output."""
    return Text("====================", style="bold")


def prompt_for_completion(exercise: Exercise, prompt_output: str | None) -> bool:
    """Return True if the exercise is done; otherwise show the pending context."""
    state = exercise.state()
    if state.done:
        return True

    plain = no_emoji()
    clippy_message = (
        "The code is compiling, and Clippy is happy!"
        if plain
        else "The code is compiling, and 📎 Clippy 📎 is happy!"
    )
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
    }[exercise.mode]

    console = _console()
    print()
    if plain:
        print(f"~*~ {success_message} ~*~")
    else:
        print(f"🎉 🎉  {success_message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        console.print(separator())
        print(prompt_output)
        console.print(separator())
        print()

    print("You can keep working on this exercise,")
    intro = Text("or jump into the next one by removing the ")
    intro.append("`I AM NOT DONE`", style="bold")
    intro.append(" comment:")
    console.print(intro)
    print()

    for context_line in state.context:
        line = Text(f"{context_line.number:>2}", style="bold blue")
        line.append(" ")
        line.append("|", style="blue")
        line.append("  ")
        line.append(context_line.line, style="bold" if context_line.important else "")
        console.print(line)

    return False