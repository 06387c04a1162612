"""Coloured status lines for the terminal."""

from __future__ import annotations

import os

from rich.console import Console
from rich.text import Text

__all__ = ["no_emoji", "warn", "success"]


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _emit(symbol: str, fallback: str, message: str, colour: str) -> None:
    marker = fallback if no_emoji() else symbol
    console = Console(highlight=False, soft_wrap=True, emoji=False)
    line = Text(marker, style=colour)
    line.append(" ")
    line.append(message, style=colour)
    console.print(line)


def warn(message: str) -> None:
    """Print a red warning line."""
    _emit("⚠️ ", "!", message, "red")


def success(message: str) -> None:
    """Print a green success line."""
    _emit("✅", "✓", message, "green")