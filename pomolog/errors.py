from __future__ import annotations


class PomologError(Exception):
    """Base class for errors raised by pomolog."""


class ValidationError(PomologError, ValueError):
    """Rejected input at a write boundary (settings, task titles)."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems = list(problems or [message])


class PersistenceFailure(PomologError):
    """The storage backend refused or failed an operation."""
