"""
Pytest configuration for recordmodel.

Provides fixtures for:
- Settings override for integration tests
- Database availability checks (integration tests skip without PostgreSQL)
- An in-memory stand-in for ``Database`` that speaks the builder API
- A ``ModelContext`` wired to the in-memory database
"""

from __future__ import annotations

import os
from typing import Any, Dict, Generator, List, Optional, Tuple

import psycopg
import pytest

from recordmodel.config import Settings
from recordmodel.context import ModelContext
from recordmodel.infrastructure.query import Result


class _MemoryStatement:
    def __init__(self, database: "MemoryDatabase") -> None:
        self._database = database
        self._table: Optional[str] = None
        self._where: List[Tuple[str, Any]] = []
        self._values: Dict[str, Any] = {}

    def where_equal(self, column: str, value: Any):
        self._where.append((column, value))
        return self

    def set(self, values):
        self._values = dict(values)
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self._where)


class _MemorySelect(_MemoryStatement):
    def __init__(self, database: "MemoryDatabase", columns) -> None:
        super().__init__(database)
        self._columns = list(columns)
        self._expressions: Dict[str, str] = {}
        self._order_by: Optional[str] = None
        self._limit: Optional[Tuple[int, Optional[int]]] = None

    def expressions(self, **aliased: str):
        self._expressions.update(aliased)
        return self

    def from_(self, table: str):
        self._table = table
        return self

    def order_by(self, column: str, descending: bool = False):
        self._order_by = column
        return self

    def limit(self, count: int, offset: Optional[int] = None):
        self._limit = (count, offset)
        return self

    def run(self) -> Result:
        rows = [dict(row) for row in self._database.rows(self._table) if self._matches(row)]
        self._database.statements.append(("select", self._table, {"limit": self._limit}))
        if self._expressions:
            # only COUNT(*) is needed by the model
            return Result([{alias: len(rows) for alias in self._expressions}])
        if self._order_by:
            rows.sort(key=lambda row: row[self._order_by])
        if self._limit is not None:
            count, offset = self._limit
            rows = rows[offset or 0 : (offset or 0) + count]
        if self._columns:
            rows = [{column: row.get(column) for column in self._columns} for row in rows]
        return Result(rows)


class _MemoryInsert(_MemoryStatement):
    def __init__(self, database: "MemoryDatabase") -> None:
        super().__init__(database)
        self._returning: Optional[str] = None

    def into(self, table: str):
        self._table = table
        return self

    def returning(self, column: str):
        self._returning = column
        return self

    def run(self) -> bool:
        self._database.statements.append(("insert", self._table, dict(self._values)))
        if self._database.fail_inserts:
            return False
        key = self._returning or "id"
        row = dict(self._values)
        row.setdefault(key, self._database.next_id())
        self._database.tables.setdefault(self._table, {})[row[key]] = row
        self._database.set_insert_id(row[key])
        return True


class _MemoryUpdate(_MemoryStatement):
    def table(self, table: str):
        self._table = table
        return self

    def run(self) -> int:
        self._database.statements.append(("update", self._table, dict(self._values)))
        affected = 0
        for row in self._database.rows(self._table):
            if self._matches(row):
                row.update(self._values)
                affected += 1
        return affected


class _MemoryReplace(_MemoryStatement):
    def __init__(self, database: "MemoryDatabase") -> None:
        super().__init__(database)
        self._conflict_on = "id"

    def into(self, table: str):
        self._table = table
        return self

    def conflict_on(self, column: str):
        self._conflict_on = column
        return self

    def run(self) -> int:
        self._database.statements.append(("replace", self._table, dict(self._values)))
        key = self._values[self._conflict_on]
        self._database.tables.setdefault(self._table, {})[key] = dict(self._values)
        return 1


class _MemoryDelete(_MemoryStatement):
    def from_(self, table: str):
        self._table = table
        return self

    def run(self) -> int:
        self._database.statements.append(("delete", self._table, {}))
        table = self._database.tables.get(self._table, {})
        doomed = [key for key, row in table.items() if self._matches(row)]
        for key in doomed:
            del table[key]
        return len(doomed)


class MemoryDatabase:
    """Dict-backed double of ``Database`` recording every statement it runs."""

    def __init__(self, name: str = "default", timezone: Optional[str] = None) -> None:
        self.name = name
        self.timezone = timezone
        self.tables: Dict[str, Dict[Any, Dict[str, Any]]] = {}
        self.statements: List[Tuple[str, Optional[str], Dict[str, Any]]] = []
        self.fail_inserts = False
        self.closed = False
        self._insert_id: Any = None
        self._sequence = 0

    def next_id(self) -> int:
        self._sequence += 1
        return self._sequence

    def rows(self, table: Optional[str]) -> List[Dict[str, Any]]:
        return list(self.tables.get(table, {}).values())

    def writes(self) -> List[Tuple[str, Optional[str], Dict[str, Any]]]:
        return [statement for statement in self.statements if statement[0] != "select"]

    def get_config(self) -> Dict[str, Any]:
        return {"timezone": self.timezone}

    def select(self, *columns: str) -> _MemorySelect:
        return _MemorySelect(self, columns)

    def insert(self) -> _MemoryInsert:
        return _MemoryInsert(self)

    def update(self) -> _MemoryUpdate:
        return _MemoryUpdate(self)

    def replace(self) -> _MemoryReplace:
        return _MemoryReplace(self)

    def delete(self) -> _MemoryDelete:
        return _MemoryDelete(self)

    def insert_id(self) -> Any:
        return self._insert_id

    def set_insert_id(self, value: Any) -> None:
        self._insert_id = value

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def memory_db_factory() -> type[MemoryDatabase]:
    return MemoryDatabase


@pytest.fixture
def memory_db() -> MemoryDatabase:
    return MemoryDatabase()


@pytest.fixture
def model_context(memory_db: MemoryDatabase) -> ModelContext:
    """Context whose ``default`` connection is the in-memory database."""
    return ModelContext(databases={"default": memory_db})


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        _env_file=None,
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "recordmodel"),
        db_timezone=os.getenv("DB_TIMEZONE", "+00:00"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()
