# rustlings

A runner for small Rust exercises. Each exercise is a `.rs` file that fails
to compile, or fails its tests, until you fix it. The runner compiles and
runs the exercises in the recommended order, shows compiler and test output,
gives hints and keeps track of which exercises you have finished.

## Requirements

- Python 3.11 or later
- A working Rust toolchain. `rustc` must be on your `PATH`: every command
  except `rustlings -v` checks for it with `rustc --version` and stops with
  exit status 1 if it cannot be run. Clippy exercises also need `cargo` with
  Clippy.

## Installation

```
pip install .
```

This installs the `rustlings` command.

## What you need besides the package

The package holds the runner only. It does not ship any exercises. Run it
from a directory that holds:

- `info.toml`, the list of exercises (see below);
- the exercise files that `info.toml` points to, under `./exercises`;
- `default_out.txt`, the welcome text printed when no subcommand is given.

Outside such a directory (one without `info.toml`), `rustlings` prints a
message and stops with exit status 1.

## Usage

```
rustlings            # show the banner and the text of default_out.txt
rustlings -v         # print the version (also --version)
rustlings verify     # check all exercises in order, stop at the first unfinished one
rustlings watch      # like verify, then re-check whenever an exercise file changes
rustlings run NAME   # compile and run (or test) a single exercise
rustlings hint NAME  # print the hint for an exercise
rustlings list       # list exercises with their status
```

Put `--nocapture` before a subcommand to see the output of test exercises:

```
rustlings --nocapture run NAME
```

`run` and `hint` exit with status 1 if no exercise has the given name.
`run` and `verify` exit with status 1 when an exercise fails to compile,
fails its tests or, for `verify`, is not yet marked as done.

### Listing exercises

```
rustlings list               # name, path and status of every exercise
rustlings list --paths       # only the paths (-p)
rustlings list --names       # only the names (-n)
rustlings list --solved      # only finished exercises (-s)
rustlings list --unsolved    # only unfinished exercises (-u)
rustlings list --filter a,b  # only exercises whose name or path contains one of the patterns (-f)
```

Filter patterns are comma separated and lower-cased before matching. The
listing ends with a progress line such as
`Progress: You completed 3 / 10 exercises (30.00 %).`

### Watch mode

`rustlings watch` verifies the exercises, then waits for `.rs` files under
`./exercises` to be created or changed. After a change it re-checks the
changed exercise and the ones after it, then every other unfinished
exercise. While it waits you can type:

- `hint`: show the hint for the exercise that is failing
- `clear`: clear the screen

When every exercise is done, it prints a closing message and exits.

### Marking an exercise as done

An exercise counts as unfinished while its file holds a comment line

```
// I AM NOT DONE
```

Once the exercise compiles (and its tests pass), the runner shows the lines
around this comment. Remove it to move on to the next exercise.

### Exercise list

`info.toml` lists the exercises in the recommended order:

```toml
[[exercises]]
name = "variables1"
path = "exercises/variables/variables1.rs"
mode = "compile"
hint = "..."
```

`mode` is one of:

- `compile`: build with `rustc` and run the program;
- `test`: build with `rustc --test` and run the test harness;
- `clippy`: write `./exercises/clippy/Cargo.toml` for the exercise and lint it
  with `cargo clippy`, warnings treated as errors.

### Environment

Set `NO_EMOJI` to any value to replace the emoji in messages with plain
characters.

## Using it from Python

The pieces behind the command can be used directly:

```python
from rustlings.exercise import load_exercise_list
from rustlings.verify import VerificationFailed, verify

exercises = load_exercise_list("info.toml")
for exercise in exercises:
    print(exercise.name, "done" if exercise.looks_done() else "pending")

try:
    verify(exercises)
except VerificationFailed as exc:
    print("stuck at", exc.exercise.name)
```

- `rustlings.exercise`: `Exercise` (`compile()`, `state()`, `looks_done()`),
  `CompiledExercise` (`run()`, usable as a context manager that removes the
  built binary), `Mode`, `State`, `ContextLine`, `ExerciseOutput`,
  `CompilationError`, `ExerciseRunError`, `parse_exercise_list()` and
  `load_exercise_list()`.
- `rustlings.verify`: `verify()`, `test()` and `prompt_for_completion()`;
  failures raise `VerificationFailed`.
- `rustlings.run`: `run()` for a single exercise.
- `rustlings.cli`: `main()`, `build_parser()`, `find_exercise()`,
  `list_exercises()` and `watch()`.