"""
recordmodel - table models for a web-application data-access layer.

This package maps database rows to application values and guards every write:

- Allow-listed write columns with primary-key protection
- Declarative validation before inserts, updates and replacements
- Optional created/updated audit timestamps in the connection's timezone
- Rows returned as dicts, generic objects or typed entities
- Read/write connection split (primary vs. replica)

SQL execution is delegated to small psycopg statement builders.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from recordmodel.config import ConnectionConfig, Settings, get_settings
from recordmodel.context import ModelContext
from recordmodel.entity import Entity, RecordConstructible, ReturnType, make_entity, make_payload
from recordmodel.exceptions import (
    ClockError,
    ConfigurationError,
    InvalidArgument,
    ModelError,
    PagerUnavailableError,
)
from recordmodel.fields import FieldPolicy
from recordmodel.language import Language
from recordmodel.model import Model
from recordmodel.pagination import Pager
from recordmodel.utils.logging import configure_logging, get_logger
from recordmodel.validation import Validation

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "ConnectionConfig",
    "Settings",
    "get_settings",
    # Models
    "Model",
    "ModelContext",
    "FieldPolicy",
    "Pager",
    # Entities
    "Entity",
    "RecordConstructible",
    "ReturnType",
    "make_entity",
    "make_payload",
    # Validation and messages
    "Validation",
    "Language",
    # Errors
    "ModelError",
    "ConfigurationError",
    "InvalidArgument",
    "ClockError",
    "PagerUnavailableError",
    # Logging
    "configure_logging",
    "get_logger",
]
