"""
Exception taxonomy for recordmodel.

Configuration and argument problems are raised and never caught by the core.
Validation failures and empty write payloads are *not* exceptions: the model
returns a failure sentinel for them instead.
"""

from __future__ import annotations


class ModelError(Exception):
    """Base class for errors raised by recordmodel."""


class ConfigurationError(ModelError):
    """Raised when a model or context is set up in a way that forbids the operation."""


class InvalidArgument(ModelError, ValueError):
    """Raised when an operation receives an unusable argument (e.g. an empty primary key)."""

    def __init__(self, argument: str, message: str):
        self.argument = argument
        super().__init__(message)


class ClockError(ModelError):
    """Raised when an audit timestamp cannot be computed from the configured timezone."""

    def __init__(self, timezone: str, message: str | None = None):
        self.timezone = timezone
        super().__init__(message or f"Invalid timezone '{timezone}'")


class PagerUnavailableError(ModelError, RuntimeError):
    """Raised when the pager is requested before any page was fetched."""


__all__ = [
    "ModelError",
    "ConfigurationError",
    "InvalidArgument",
    "ClockError",
    "PagerUnavailableError",
]
