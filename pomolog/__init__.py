"""Pomolog: pomodoro timer with tasks, a session log and daily stats."""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main", "__version__"]
