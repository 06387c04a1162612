"""Command-line entry point: list, run, hint, verify and watch exercises."""

from __future__ import annotations

import argparse
import os
import queue
import subprocess
import sys
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from itertools import chain, dropwhile
from pathlib import Path, PurePath
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise, load_exercise_list
from .run import run
from .ui import no_emoji
from .verify import VerificationFailed, verify

__all__ = [
    "ExerciseNotFound",
    "build_parser",
    "find_exercise",
    "list_exercises",
    "rustc_exists",
    "spawn_watch_shell",
    "watch",
    "main",
]

VERSION = "4.4.0"
WATCH_DIRECTORY = Path("./exercises")
DEBOUNCE_SECONDS = 2.0

# Full terminal reset; works in UNIX and newer Windows terminals.
_RESET_TERMINAL = "\x1bc"

_BANNER = (
    r"       welcome to...                      ",
    r"                 _   _ _                  ",
    r"  _ __ _   _ ___| |_| (_)_ __   __ _ ___  ",
    r" | '__| | | / __| __| | | '_ \ / _` / __| ",
    r" | |  | |_| \__ \ |_| | | | | | (_| \__ \ ",
    r" |_|   \__,_|___/\__|_|_|_| |_|\__, |___/ ",
    r"                               |___/      ",
)

_FINISH_ART = (
    "+----------------------------------------------------+",
    "|          You made it to the Fe-nish line!          |",
    "+--------------------------  ------------------------+",
    "                          \\/                         ",
    "     ▒▒          ▒▒▒▒▒▒▒▒      ▒▒▒▒▒▒▒▒          ▒▒   ",
    "   ▒▒▒▒  ▒▒    ▒▒        ▒▒  ▒▒        ▒▒    ▒▒  ▒▒▒▒ ",
    "   ▒▒▒▒  ▒▒  ▒▒            ▒▒            ▒▒  ▒▒  ▒▒▒▒ ",
    " ░░▒▒▒▒░░▒▒  ▒▒            ▒▒            ▒▒  ▒▒░░▒▒▒▒ ",
    "   ▓▓▓▓▓▓▓▓  ▓▓      ▓▓██  ▓▓  ▓▓██      ▓▓  ▓▓▓▓▓▓▓▓ ",
    "     ▒▒▒▒    ▒▒      ████  ▒▒  ████      ▒▒░░  ▒▒▒▒   ",
    "       ▒▒  ▒▒▒▒▒▒        ▒▒▒▒▒▒        ▒▒▒▒▒▒  ▒▒     ",
    "         ▒▒▒▒▒▒▒▒▒▒▓▓▓▓▓▓▒▒▒▒▒▒▒▒▓▓▒▒▓▓▒▒▒▒▒▒▒▒       ",
    "           ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒         ",
    "             ▒▒▒▒▒▒▒▒▒▒██▒▒▒▒▒▒██▒▒▒▒▒▒▒▒▒▒           ",
    "           ▒▒  ▒▒▒▒▒▒▒▒▒▒██████▒▒▒▒▒▒▒▒▒▒  ▒▒         ",
    "         ▒▒    ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒    ▒▒       ",
    "       ▒▒    ▒▒    ▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒▒    ▒▒    ▒▒     ",
    "       ▒▒  ▒▒    ▒▒                  ▒▒    ▒▒  ▒▒     ",
    "           ▒▒  ▒▒                      ▒▒  ▒▒         ",
)


class ExerciseNotFound(LookupError):
    """No exercise has the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


class _Parser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = _Parser(
        prog="rustlings",
        description=(
            "Rustlings is a collection of small exercises to get you used "
            "to writing and reading Rust code"
        ),
    )
    parser.add_argument(
        "--nocapture", action="store_true", help="show outputs from the test exercises"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser(
        "verify", help="Verifies all exercises according to the recommended order"
    )
    commands.add_parser("watch", help="Reruns `verify` when files were edited")

    run_parser = commands.add_parser("run", help="Runs/Tests a single exercise")
    run_parser.add_argument("name", help="the name of the exercise")

    hint_parser = commands.add_parser("hint", help="Returns a hint for the given exercise")
    hint_parser.add_argument("name", help="the name of the exercise")

    list_parser = commands.add_parser(
        "list", help="Lists the exercises available in Rustlings"
    )
    list_parser.add_argument(
        "-p", "--paths", action="store_true", help="show only the paths of the exercises"
    )
    list_parser.add_argument(
        "-n", "--names", action="store_true", help="show only the names of the exercises"
    )
    list_parser.add_argument(
        "-f",
        "--filter",
        default=None,
        help="provide a string to match exercise names; comma separated patterns are acceptable",
    )
    list_parser.add_argument(
        "-u", "--unsolved", action="store_true", help="display only exercises not yet solved"
    )
    list_parser.add_argument(
        "-s", "--solved", action="store_true", help="display only exercises that have been solved"
    )
    return parser


def find_exercise(name: str, exercises: Iterable[Exercise]) -> Exercise:
    """Return the exercise with the given name or raise ExerciseNotFound."""
    found = next((exercise for exercise in exercises if exercise.name == name), None)
    if found is None:
        raise ExerciseNotFound(name)
    return found


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    filter: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> Iterator[str]:
    """Yield the lines of the exercise listing, ending with the progress line."""
    if not paths and not names:
        yield f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}"

    patterns = [p for p in (filter or "").lower().split(",") if p.strip()]
    done_count = 0
    for exercise in exercises:
        fname = str(exercise.path)
        matches = any(p in exercise.name or p in fname for p in patterns)
        done = exercise.looks_done()
        if done:
            done_count += 1
        status = "Done" if done else "Pending"
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if wanted and (matches or filter is None):
            if paths:
                yield fname
            elif names:
                yield exercise.name
            else:
                yield f"{exercise.name:<17}\t{fname:<46}\t{status:<7}"

    total = len(exercises)
    percentage = "NaN" if total == 0 else f"{done_count / total * 100.0:.2f}"
    yield f"Progress: You completed {done_count} / {total} exercises ({percentage} %)."


def rustc_exists() -> bool:
    """Whether `rustc --version` can be run successfully."""
    try:
        completed = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL)
    except OSError:
        return False
    return completed.returncode == 0


def spawn_watch_shell(failed_hint: Callable[[], str | None]) -> threading.Thread:
    """Start a background thread answering 'hint' and 'clear' typed on stdin."""
    print(
        "Type 'hint' or open the corresponding README.md file to get help "
        "or type 'clear' to clear the screen."
    )

    def shell() -> None:
        while True:
            try:
                raw = sys.stdin.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                continue
            if not raw:
                return
            command = raw.strip()
            if command == "hint":
                hint = failed_hint()
                if hint is not None:
                    print(hint)
            elif command == "clear":
                print("\x1b[2J\x1b[1;1H")
            else:
                print(f"unknown command: {command}")

    thread = threading.Thread(target=shell, daemon=True)
    thread.start()
    return thread


class _RustFileEvents(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[Path]) -> None:
        super().__init__()
        self._events = events

    def _push(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(Path(os.fsdecode(event.src_path)))

    def on_created(self, event: FileSystemEvent) -> None:
        self._push(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._push(event)


def _ends_with(path: PurePath, suffix: PurePath) -> bool:
    tail = suffix.parts
    return 0 < len(tail) <= len(path.parts) and path.parts[-len(tail):] == tail


def _clear_screen(stream: TextIO | None = None) -> None:
    """Reset the terminal so the next verification starts on a clean screen."""
    out = sys.stdout if stream is None else stream
    out.write(_RESET_TERMINAL + "\n")
    out.flush()


def _next_batch(events: queue.Queue[Path]) -> list[Path]:
    batch = [events.get()]
    while True:
        try:
            batch.append(events.get(timeout=DEBOUNCE_SECONDS))
        except queue.Empty:
            return list(dict.fromkeys(batch))


def watch(exercises: Sequence[Exercise], verbose: bool = False) -> None:
    """Verify exercises, then re-verify on each edit until all are done."""
    if not WATCH_DIRECTORY.is_dir():
        raise FileNotFoundError(f"No such directory: {WATCH_DIRECTORY}")

    events: queue.Queue[Path] = queue.Queue()
    observer = Observer()
    observer.schedule(_RustFileEvents(events), str(WATCH_DIRECTORY), recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, verbose)
            return
        except VerificationFailed as exc:
            current_hint: list[str] = [exc.exercise.hint]

        spawn_watch_shell(lambda: current_hint[0])
        while True:
            for changed in _next_batch(events):
                if changed.suffix != ".rs" or not changed.exists():
                    continue
                filepath = changed.resolve()
                pending = chain(
                    dropwhile(lambda e: not _ends_with(filepath, e.path), exercises),
                    (
                        e
                        for e in exercises
                        if not e.looks_done() and not _ends_with(filepath, e.path)
                    ),
                )
                _clear_screen()
                try:
                    verify(pending, verbose)
                    return
                except VerificationFailed as exc:
                    current_hint[0] = exc.exercise.hint
    finally:
        observer.stop()
        observer.join()


def _print_finish() -> None:
    emoji = "★" if no_emoji() else "🎉"
    print(f"{emoji} All exercises completed! {emoji}")
    print()
    for line in _FINISH_ART:
        print(line)
    print()
    print("We hope you enjoyed learning about the various aspects of Rust!")
    print("If you noticed any issues, please don't hesitate to report them to our repo.")
    print("You can also contribute your own exercises to help the greater community!")
    print()
    print("Before reporting an issue or contributing, please read our guidelines in CONTRIBUTING.md.")


def _write_listing(lines: Iterable[str]) -> int:
    try:
        for line in lines:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()
    except BrokenPipeError:
        return 0
    except OSError:
        return 1
    return 0


def _exit_code(exc: SystemExit) -> int:
    if exc.code is None:
        return 0
    if isinstance(exc.code, int):
        return exc.code
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        return _exit_code(exc)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print()
        for line in _BANNER:
            print(line)
        print()

    if not Path("info.toml").exists():
        print(f"{sys.argv[0]} must be run from the rustlings directory")
        print("Try `cd rustlings/`!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercise_list("info.toml")
    verbose = args.nocapture

    if args.command is None:
        print(Path("default_out.txt").read_text(encoding="utf-8"))
        return 0

    if args.command == "list":
        return _write_listing(
            list_exercises(
                exercises,
                paths=args.paths,
                names=args.names,
                filter=args.filter,
                unsolved=args.unsolved,
                solved=args.solved,
            )
        )

    if args.command in ("run", "hint"):
        try:
            exercise = find_exercise(args.name, exercises)
        except ExerciseNotFound:
            print(f"No exercise found for '{args.name}'!")
            return 1
        if args.command == "hint":
            print(exercise.hint)
            return 0
        try:
            run(exercise, verbose)
        except VerificationFailed:
            return 1
        return 0

    if args.command == "verify":
        try:
            verify(exercises, verbose)
        except VerificationFailed:
            return 1
        return 0

    try:
        watch(exercises, verbose)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print(
            "Most likely you've run out of disk space or your 'inotify limit' has been reached."
        )
        return 1
    _print_finish()
    return 0