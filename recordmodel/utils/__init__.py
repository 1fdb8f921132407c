"""
Utilities package for recordmodel.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of model-specific logic.
"""

from recordmodel.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
