"""
Named database handle executing builder statements on a psycopg pool.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from recordmodel.config import ConnectionConfig
from recordmodel.infrastructure.db_factory import apply_statement_timeout
from recordmodel.infrastructure.query import Delete, Insert, Replace, Select, Update
from recordmodel.utils.logging import get_logger

log = get_logger(__name__)


class Database:
    """
    Entry point of the statement builders for one named connection.

    Every statement borrows a pooled connection for its own transaction:
    the pool commits when the statement succeeds and rolls back when it
    raises. Driver errors are not translated.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        config: Optional[ConnectionConfig] = None,
        name: str = "default",
    ) -> None:
        self._pool = pool
        self._config = config or ConnectionConfig()
        self.name = name
        self._insert_id: Any = None

    def get_config(self) -> Dict[str, Any]:
        return self._config.model_dump()

    def select(self, *columns: str) -> Select:
        return Select(self, columns)

    def insert(self) -> Insert:
        return Insert(self)

    def update(self) -> Update:
        return Update(self)

    def replace(self) -> Replace:
        return Replace(self)

    def delete(self) -> Delete:
        return Delete(self)

    def insert_id(self) -> Any:
        """Key returned by the last ``insert().returning(...)`` on this handle."""
        return self._insert_id

    def set_insert_id(self, value: Any) -> None:
        self._insert_id = value

    def execute(
        self, statement: sql.Composable, params: Sequence[Any] = ()
    ) -> Tuple[int, List[Dict[str, Any]]]:
        """
        Execute one statement and return ``(rowcount, rows)``.

        ``rows`` is empty for statements that produce no result set.
        """
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                apply_statement_timeout(cur, self._config.statement_timeout_ms)
                cur.execute(statement, params)
                rows = cur.fetchall() if cur.description is not None else []
                rowcount = cur.rowcount
        log.debug(
            "Statement executed",
            extra={"connection": self.name, "rowcount": rowcount, "params": len(params)},
        )
        return rowcount, rows

    def close(self) -> None:
        self._pool.close()


__all__ = ["Database"]
