"""
Abstract table model: allow-listed writes, validation, audit timestamps and
entity mapping on top of the statement builders.

Subclasses describe their table with class attributes::

    class UserModel(Model):
        allowed_fields = ("name", "email")
        validation_rules = {"name": "required|minLength:3", "email": "required|email"}
        validation_labels = {"name": "Name", "email": "E-mail"}
        use_datetime = True

    with UserModel(context) as users:
        user_id = users.create({"name": "Alice", "email": "alice@example.com"})
        if user_id is None:
            print(users.get_errors())

Validation failures and empty payloads are reported with the ``None``
sentinel; misconfiguration and invalid arguments raise.
"""

from __future__ import annotations

import weakref
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple

from recordmodel import clock
from recordmodel.context import ModelContext, next_scope_id
from recordmodel.entity import ReturnType, ReturnTypeSpec, make_entity, make_payload
from recordmodel.exceptions import ConfigurationError, InvalidArgument, PagerUnavailableError
from recordmodel.fields import FieldPolicy
from recordmodel.infrastructure.database import Database
from recordmodel.pagination import Pager
from recordmodel.utils.logging import get_logger
from recordmodel.validation import RuleExpression, Validation

log = get_logger(__name__)


class Model:
    connections: ClassVar[Mapping[str, str]] = {"read": "default", "write": "default"}
    table: ClassVar[Optional[str]] = None
    primary_key: ClassVar[str] = "id"
    protect_primary_key: ClassVar[bool] = True
    return_type: ClassVar[ReturnTypeSpec] = ReturnType.OBJECT
    allowed_fields: ClassVar[Tuple[str, ...]] = ()
    use_datetime: ClassVar[bool] = False
    datetime_field_create: ClassVar[str] = "created_at"
    datetime_field_update: ClassVar[str] = "updated_at"
    datetime_format: ClassVar[str] = "%Y-%m-%d %H:%M:%S"
    validation_rules: ClassVar[Optional[Mapping[str, RuleExpression]]] = None
    validation_labels: ClassVar[Mapping[str, str]] = {}

    def __init__(self, context: ModelContext) -> None:
        self.context = context
        self._identifier = next_scope_id(type(self).__name__)
        self._table: Optional[str] = None
        self._validation: Optional[Validation] = None
        self._pager: Optional[Pager] = None
        self._finalizer = weakref.finalize(self, context.release_validation, self._identifier)

    def close(self) -> None:
        """Release this model's validation scope from the context."""
        self._finalizer()
        self._validation = None

    def __enter__(self) -> "Model":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_identifier(self) -> str:
        return self._identifier

    def get_table(self) -> str:
        if self._table is None:
            name = self.table or type(self).__name__
            if not self.table and name.endswith("Model") and name != "Model":
                name = name[: -len("Model")]
            self._table = name
        return self._table

    def get_allowed_fields(self) -> Tuple[str, ...]:
        return tuple(self.allowed_fields)

    def get_field_policy(self) -> FieldPolicy:
        return FieldPolicy(
            allowed_fields=tuple(self.allowed_fields),
            primary_key=self.primary_key,
            protect_primary_key=self.protect_primary_key,
        )

    def _check_primary_key(self, primary_key: Any) -> None:
        if not primary_key or primary_key == "0":
            raise InvalidArgument("primary_key", "Primary Key can not be empty")

    def _filter_allowed_fields(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return self.get_field_policy().filter_allowed(data)

    def get_database_for_read(self) -> Database:
        return self.context.database(self.connections["read"])

    def get_database_for_write(self) -> Database:
        return self.context.database(self.connections["write"])

    def _make_entity(self, row: Mapping[str, Any]) -> Any:
        return make_entity(row, self.return_type)

    def _prepare_data(self, data: Any) -> Dict[str, Any]:
        """Convert ``data`` to a dict and keep the allowed columns."""
        return self._filter_allowed_fields(make_payload(data))

    def _get_datetime(self) -> str:
        """
        Current time for the datetime columns, in the write connection's
        timezone (UTC when unset).

        Raises ``ClockError`` if the configured timezone is invalid.
        """
        timezone = self.get_database_for_write().get_config().get("timezone")
        return clock.now(self.datetime_format, timezone)

    def get_validation(self) -> Validation:
        if self.validation_rules is None:
            raise ConfigurationError(f"Validation rules are not set for {type(self).__name__}")
        if self._validation is None:
            if not self._finalizer.alive:
                self._finalizer = weakref.finalize(
                    self, self.context.release_validation, self._identifier
                )
            self._validation = (
                self.context.validation(self._identifier)
                .set_labels(self.validation_labels)
                .set_rules(self.validation_rules)
            )
        return self._validation

    def get_errors(self) -> Dict[str, str]:
        """Field errors of the last validation."""
        return self.get_validation().get_errors()

    def count(self) -> int:
        """Count all rows in the table."""
        row = (
            self.get_database_for_read()
            .select()
            .expressions(count="COUNT(*)")
            .from_(self.get_table())
            .run()
            .fetch_array()
        )
        return int(row["count"]) if row else 0

    @staticmethod
    def _make_page_limit_and_offset(page: int, per_page: int = 10) -> Tuple[int, Optional[int]]:
        page = abs(int(page))
        per_page = abs(int(per_page))
        offset = None if page <= 1 else page * per_page - per_page
        return per_page, offset

    def paginate(self, page: int, per_page: int = 10) -> List[Any]:
        """
        Fetch one page of rows ordered by primary key.

        The page's ``Pager`` is available from ``get_pager`` afterwards.
        """
        rows = (
            self.get_database_for_read()
            .select()
            .from_(self.get_table())
            .order_by(self.primary_key)
            .limit(*self._make_page_limit_and_offset(page, per_page))
            .run()
            .fetch_array_all()
        )
        entities = [self._make_entity(row) for row in rows]
        self._pager = Pager(page, per_page, self.count(), self.context.language)
        return entities

    def get_pager(self) -> Pager:
        if self._pager is None:
            raise PagerUnavailableError("The pager is available only after calling paginate()")
        return self._pager

    def find(self, primary_key: Any) -> Optional[Any]:
        """Return the row with ``primary_key`` as ``return_type``, or None."""
        self._check_primary_key(primary_key)
        row = (
            self.get_database_for_read()
            .select()
            .from_(self.get_table())
            .where_equal(self.primary_key, primary_key)
            .limit(1)
            .run()
            .fetch_array()
        )
        return self._make_entity(row) if row else None

    def create(self, data: Any) -> Optional[Any]:
        """
        Insert a new row.

        Returns the new primary key, or None if validation failed, nothing
        allowed was given, or the insert did not succeed.
        """
        data = self._prepare_data(data)
        if not self.get_validation().validate(data):
            log.debug("Create rejected by validation", extra={"table": self.get_table()})
            return None
        if not data:
            log.warning("Create skipped, empty payload", extra={"table": self.get_table()})
            return None
        if self.use_datetime:
            datetime = self._get_datetime()
            data.setdefault(self.datetime_field_create, datetime)
            data.setdefault(self.datetime_field_update, datetime)
        database = self.get_database_for_write()
        inserted = (
            database.insert()
            .into(self.get_table())
            .set(data)
            .returning(self.primary_key)
            .run()
        )
        if not inserted:
            return None
        log.debug("Row created", extra={"table": self.get_table(), "columns": sorted(data)})
        return database.insert_id()

    def save(self, data: Any) -> Optional[Any]:
        """
        Update the row when ``data`` carries a primary key, otherwise insert.

        Returns what ``update`` or ``create`` return.
        """
        data = make_payload(data)
        primary_key = data.get(self.primary_key)
        if primary_key is None:
            data.pop(self.primary_key, None)
        data = self._filter_allowed_fields(data)
        if primary_key is not None:
            return self.update(primary_key, data)
        return self.create(data)

    def update(self, primary_key: Any, data: Any) -> Optional[int]:
        """
        Update a row by primary key, checking only the rules of the given fields.

        Returns the number of affected rows (0 when nothing matched), or None
        if validation failed or there is nothing to write. With ``use_datetime``
        an empty payload still stamps the update field.
        """
        self._check_primary_key(primary_key)
        data = self._prepare_data(data)
        if not self.get_validation().validate_only(data):
            log.debug("Update rejected by validation", extra={"table": self.get_table()})
            return None
        if self.use_datetime:
            data.setdefault(self.datetime_field_update, self._get_datetime())
        if not data:
            log.warning("Update skipped, empty payload", extra={"table": self.get_table()})
            return None
        affected = (
            self.get_database_for_write()
            .update()
            .table(self.get_table())
            .set(data)
            .where_equal(self.primary_key, primary_key)
            .run()
        )
        log.debug("Row updated", extra={"table": self.get_table(), "affected": affected})
        return affected

    def replace(self, primary_key: Any, data: Any) -> Optional[int]:
        """
        Insert or fully replace the row with ``primary_key``.

        Returns the number of affected rows, or None if validation failed.
        """
        self._check_primary_key(primary_key)
        data = self._prepare_data(data)
        data[self.primary_key] = primary_key
        if not self.get_validation().validate(data):
            log.debug("Replace rejected by validation", extra={"table": self.get_table()})
            return None
        if self.use_datetime:
            datetime = self._get_datetime()
            data.setdefault(self.datetime_field_create, datetime)
            data.setdefault(self.datetime_field_update, datetime)
        affected = (
            self.get_database_for_write()
            .replace()
            .into(self.get_table())
            .set(data)
            .conflict_on(self.primary_key)
            .run()
        )
        log.debug("Row replaced", extra={"table": self.get_table(), "affected": affected})
        return affected

    def delete(self, primary_key: Any) -> int:
        """Delete by primary key and return the number of affected rows."""
        self._check_primary_key(primary_key)
        affected = (
            self.get_database_for_write()
            .delete()
            .from_(self.get_table())
            .where_equal(self.primary_key, primary_key)
            .run()
        )
        log.debug("Row deleted", extra={"table": self.get_table(), "affected": affected})
        return affected


__all__ = ["Model"]
