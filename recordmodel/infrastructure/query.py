"""
Fluent statement builders executed through a ``Database``.

Statements are composed with ``psycopg.sql`` so table and column names are
always quoted identifiers and values always travel as bound parameters::

    db.select().from_("User").where_equal("id", 7).limit(1).run().fetch_array()
    db.insert().into("User").set({"name": "Alice"}).returning("id").run()
    db.update().table("User").set({"name": "Bob"}).where_equal("id", 7).run()
    db.replace().into("User").set({"id": 7, "name": "Bob"}).conflict_on("id").run()
    db.delete().from_("User").where_equal("id", 7).run()
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from psycopg import sql

if TYPE_CHECKING:
    from recordmodel.infrastructure.database import Database

Row = Dict[str, Any]
Compiled = Tuple[sql.Composable, List[Any]]


class Result:
    """Rows returned by a ``SELECT``."""

    def __init__(self, rows: Sequence[Row]) -> None:
        self._rows = [dict(row) for row in rows]

    def __len__(self) -> int:
        return len(self._rows)

    def fetch_array(self) -> Optional[Row]:
        return self._rows[0] if self._rows else None

    def fetch_array_all(self) -> List[Row]:
        return list(self._rows)

    def fetch(self) -> Optional[SimpleNamespace]:
        row = self.fetch_array()
        return SimpleNamespace(**row) if row is not None else None

    def fetch_all(self) -> List[SimpleNamespace]:
        return [SimpleNamespace(**row) for row in self._rows]


class _Statement:
    keyword = ""

    def __init__(self, database: "Database") -> None:
        self._database = database
        self._table: Optional[str] = None

    def _table_identifier(self) -> sql.Identifier:
        if not self._table:
            raise ValueError(f"{self.keyword} statement has no table")
        return sql.Identifier(self._table)

    def compile(self) -> Compiled:  # pragma: no cover - interface only
        raise NotImplementedError


class _Filtered(_Statement):
    def __init__(self, database: "Database") -> None:
        super().__init__(database)
        self._where: List[Tuple[str, Any]] = []

    def where_equal(self, column: str, value: Any):
        self._where.append((column, value))
        return self

    def _compile_where(self, params: List[Any]) -> sql.Composable:
        if not self._where:
            return sql.SQL("")
        conditions = []
        for column, value in self._where:
            if value is None:
                conditions.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
            else:
                conditions.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                params.append(value)
        return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)


class _Assigning(_Statement):
    def __init__(self, database: "Database") -> None:
        super().__init__(database)
        self._values: Row = {}

    def set(self, values: Mapping[str, Any]):
        self._values = dict(values)
        return self

    def _require_values(self) -> None:
        if not self._values:
            raise ValueError(f"{self.keyword} statement has no values to set")


class Select(_Filtered):
    keyword = "SELECT"

    def __init__(self, database: "Database", columns: Sequence[str] = ()) -> None:
        super().__init__(database)
        self._columns = list(columns)
        self._expressions: Dict[str, str] = {}
        self._order_by: List[Tuple[str, bool]] = []
        self._limit: Optional[Tuple[int, Optional[int]]] = None

    def expressions(self, **aliased: str) -> "Select":
        """Add raw SQL expressions selected under the given aliases (``count="COUNT(*)"``)."""
        self._expressions.update(aliased)
        return self

    def from_(self, table: str) -> "Select":
        self._table = table
        return self

    def order_by(self, column: str, descending: bool = False) -> "Select":
        self._order_by.append((column, descending))
        return self

    def limit(self, count: int, offset: Optional[int] = None) -> "Select":
        self._limit = (count, offset)
        return self

    def compile(self) -> Compiled:
        params: List[Any] = []
        selected: List[sql.Composable] = [sql.Identifier(column) for column in self._columns]
        selected += [
            sql.SQL("{} AS {}").format(sql.SQL(expression), sql.Identifier(alias))
            for alias, expression in self._expressions.items()
        ]
        columns = sql.SQL(", ").join(selected) if selected else sql.SQL("*")
        query = sql.SQL("SELECT {} FROM {}").format(columns, self._table_identifier())
        query += self._compile_where(params)
        if self._order_by:
            query += sql.SQL(" ORDER BY ") + sql.SQL(", ").join(
                sql.SQL("{} DESC" if descending else "{} ASC").format(sql.Identifier(column))
                for column, descending in self._order_by
            )
        if self._limit is not None:
            count, offset = self._limit
            query += sql.SQL(" LIMIT %s")
            params.append(count)
            if offset is not None:
                query += sql.SQL(" OFFSET %s")
                params.append(offset)
        return query, params

    def run(self) -> Result:
        _, rows = self._database.execute(*self.compile())
        return Result(rows)


class Insert(_Assigning):
    keyword = "INSERT"

    def __init__(self, database: "Database") -> None:
        super().__init__(database)
        self._returning: Optional[str] = None

    def into(self, table: str) -> "Insert":
        self._table = table
        return self

    def returning(self, column: str) -> "Insert":
        """Return ``column`` of the inserted row; it becomes ``Database.insert_id()``."""
        self._returning = column
        return self

    def compile(self) -> Compiled:
        self._require_values()
        columns = list(self._values)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
            self._table_identifier(),
            sql.SQL(", ").join(map(sql.Identifier, columns)),
            sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        if self._returning:
            query += sql.SQL(" RETURNING {}").format(sql.Identifier(self._returning))
        return query, [self._values[column] for column in columns]

    def run(self) -> bool:
        rowcount, rows = self._database.execute(*self.compile())
        if self._returning and rows:
            self._database.set_insert_id(rows[0][self._returning])
        return rowcount > 0


class Update(_Assigning, _Filtered):
    keyword = "UPDATE"

    def table(self, table: str) -> "Update":
        self._table = table
        return self

    def compile(self) -> Compiled:
        self._require_values()
        params = list(self._values.values())
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in self._values
        )
        query = sql.SQL("UPDATE {} SET {}").format(self._table_identifier(), assignments)
        query += self._compile_where(params)
        return query, params

    def run(self) -> int:
        rowcount, _ = self._database.execute(*self.compile())
        return max(rowcount, 0)


class Replace(_Assigning):
    """``INSERT ... ON CONFLICT (key) DO UPDATE``: PostgreSQL's row replacement."""

    keyword = "REPLACE"

    def __init__(self, database: "Database") -> None:
        super().__init__(database)
        self._conflict_on: Optional[str] = None

    def into(self, table: str) -> "Replace":
        self._table = table
        return self

    def conflict_on(self, column: str) -> "Replace":
        self._conflict_on = column
        return self

    def compile(self) -> Compiled:
        self._require_values()
        if not self._conflict_on:
            raise ValueError("REPLACE statement has no conflict column")
        columns = list(self._values)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) ON CONFLICT ({})").format(
            self._table_identifier(),
            sql.SQL(", ").join(map(sql.Identifier, columns)),
            sql.SQL(", ").join(sql.Placeholder() * len(columns)),
            sql.Identifier(self._conflict_on),
        )
        updated = [column for column in columns if column != self._conflict_on]
        if updated:
            query += sql.SQL(" DO UPDATE SET {}").format(
                sql.SQL(", ").join(
                    sql.SQL("{0} = EXCLUDED.{0}").format(sql.Identifier(column))
                    for column in updated
                )
            )
        else:
            query += sql.SQL(" DO NOTHING")
        return query, [self._values[column] for column in columns]

    def run(self) -> int:
        rowcount, _ = self._database.execute(*self.compile())
        return max(rowcount, 0)


class Delete(_Filtered):
    keyword = "DELETE"

    def from_(self, table: str) -> "Delete":
        self._table = table
        return self

    def compile(self) -> Compiled:
        params: List[Any] = []
        query = sql.SQL("DELETE FROM {}").format(self._table_identifier())
        query += self._compile_where(params)
        return query, params

    def run(self) -> int:
        rowcount, _ = self._database.execute(*self.compile())
        return max(rowcount, 0)


__all__ = [
    "Delete",
    "Insert",
    "Replace",
    "Result",
    "Select",
    "Update",
]
