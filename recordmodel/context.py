"""
Explicit service context handed to every model.

A ``ModelContext`` owns the named database handles, the message language and
the validation scopes of the models built on it. Database handles are opened
lazily from the settings on first use; validation scopes are created on first
use and released when their model is closed or collected.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, Mapping, Optional

from psycopg_pool import ConnectionPool

from recordmodel.config import ConnectionConfig, Settings, get_settings
from recordmodel.exceptions import ConfigurationError
from recordmodel.infrastructure.database import Database
from recordmodel.infrastructure.db_factory import open_pool
from recordmodel.language import Language
from recordmodel.utils.logging import get_logger
from recordmodel.validation import Validation

log = get_logger(__name__)

PoolFactory = Callable[[ConnectionConfig, str], ConnectionPool]
ValidationFactory = Callable[[Language], Validation]

_scope_counter = itertools.count(1)


def next_scope_id(prefix: str = "Model") -> str:
    """Allocate a process-unique identifier for a validation scope."""
    return f"{prefix}:{next(_scope_counter)}"


class ModelContext:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        language: Optional[Language] = None,
        databases: Optional[Mapping[str, Any]] = None,
        pool_factory: PoolFactory = open_pool,
        validation_factory: Optional[ValidationFactory] = None,
    ) -> None:
        self.settings = settings
        self.language = language or Language(settings.app_locale if settings else "en")
        self._databases: Dict[str, Any] = dict(databases or {})
        self._owned: set[str] = set()
        self._pool_factory = pool_factory
        self._validation_factory: ValidationFactory = validation_factory or Validation
        self._validations: Dict[str, Validation] = {}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "ModelContext":
        return cls(settings or get_settings(), **kwargs)

    def register_database(self, name: str, database: Any) -> "ModelContext":
        """Make ``database`` the handle for connection ``name`` (not closed by the context)."""
        self._databases[name] = database
        self._owned.discard(name)
        return self

    def database(self, name: str = "default") -> Database:
        """
        Return the handle of connection ``name``, opening its pool on first use.

        Raises
        ------
        ConfigurationError
            If the connection is neither registered nor configured.
        """
        database = self._databases.get(name)
        if database is not None:
            return database
        configs = self.settings.connection_configs() if self.settings else {}
        config = configs.get(name)
        if config is None:
            raise ConfigurationError(f"Database connection '{name}' is not configured")
        database = Database(self._pool_factory(config, name), config, name)
        self._databases[name] = database
        self._owned.add(name)
        return database

    def validation(self, scope: str) -> Validation:
        """Return the validation instance of ``scope``, creating it on first use."""
        validation = self._validations.get(scope)
        if validation is None:
            validation = self._validation_factory(self.language)
            self._validations[scope] = validation
        return validation

    def has_validation(self, scope: str) -> bool:
        return scope in self._validations

    def release_validation(self, scope: str) -> None:
        self._validations.pop(scope, None)

    def close(self) -> None:
        """Close the database handles this context opened itself."""
        for name in sorted(self._owned):
            database = self._databases.pop(name)
            database.close()
            log.info("Connection closed", extra={"connection": name})
        self._owned.clear()

    def __enter__(self) -> "ModelContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["ModelContext", "next_scope_id"]
