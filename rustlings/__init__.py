"""Runner for small Rust exercises: compile, test, lint, hint and track progress."""

__version__ = "4.4.0"