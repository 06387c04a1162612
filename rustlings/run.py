"""Running a single exercise."""

from __future__ import annotations

from rich.console import Console

from .exercise import CompilationError, Exercise, ExerciseRunError, Mode
from .ui import success, warn
from .verify import VerificationFailed, test

__all__ = ["run"]


def _compile_and_run(exercise: Exercise) -> None:
    console = Console(highlight=False, soft_wrap=True, emoji=False)
    try:
        with console.status(f"Compiling {exercise}...") as status:
            with exercise.compile() as compiled:
                status.update(f"Running {exercise}...")
                output = compiled.run()
    except CompilationError as exc:
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        raise VerificationFailed(exercise) from exc
    except ExerciseRunError as exc:
        print(exc.output.stdout)
        print(exc.output.stderr)
        warn(f"Ran {exercise} with errors")
        raise VerificationFailed(exercise) from exc

    print(output.stdout)
    success(f"Successfully ran {exercise}")


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run one exercise; raise VerificationFailed if it fails."""
    if exercise.mode is Mode.TEST:
        test(exercise, verbose)
    else:
        _compile_and_run(exercise)