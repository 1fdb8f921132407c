"""
Entity mapping between database rows and application values.

A model's ``return_type`` decides the shape of every fetched row:

- ``ReturnType.DICT``: the row mapping itself.
- ``ReturnType.OBJECT``: a ``SimpleNamespace`` exposing the columns as attributes.
- a class implementing ``RecordConstructible`` (usually an ``Entity``
  subclass): built with ``from_record(row)``.

Write paths go the other way with ``make_payload``.
"""

from __future__ import annotations

import enum
from types import SimpleNamespace
from typing import Any, Dict, Mapping, Protocol, Type, TypeVar, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict

T_Entity = TypeVar("T_Entity", bound="Entity")

Row = Dict[str, Any]


class ReturnType(str, enum.Enum):
    DICT = "dict"
    OBJECT = "object"


@runtime_checkable
class RecordConstructible(Protocol):
    """Capability of a typed record: hydrate from a row, serialize back to one."""

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "RecordConstructible":
        ...

    def to_record(self) -> Dict[str, Any]:
        ...


class Entity(BaseModel):
    """
    Base class for typed records.

    Row scalars are coerced to the declared field types (``"7"`` -> ``7``,
    ``"2024-01-01 10:00:00"`` -> ``datetime``). Columns without a declared
    field are ignored. Fields never set are left out of ``to_record``, while
    an explicit ``None`` is kept so ``save`` can clear a nullable column.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, validate_assignment=True)

    @classmethod
    def from_record(cls: Type[T_Entity], data: Mapping[str, Any]) -> T_Entity:
        return cls.model_validate(dict(data))

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


ReturnTypeSpec = Union[ReturnType, Type[RecordConstructible]]
EntityValue = Union[Row, SimpleNamespace, RecordConstructible]


def make_entity(row: Mapping[str, Any], return_type: ReturnTypeSpec) -> Any:
    """
    Map a raw row to the configured return type.

    Errors raised by a typed record's ``from_record`` are not caught.
    """
    if isinstance(return_type, str):
        return_type = ReturnType(return_type)
    if return_type is ReturnType.DICT:
        return dict(row)
    if return_type is ReturnType.OBJECT:
        return SimpleNamespace(**row)
    return return_type.from_record(row)


def make_payload(data: Any) -> Row:
    """
    Normalize a mapping, a generic object or a typed record to a plain dict.
    """
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, RecordConstructible):
        return dict(data.to_record())
    if isinstance(data, BaseModel):
        return data.model_dump()
    if isinstance(data, SimpleNamespace) or hasattr(data, "__dict__"):
        return dict(vars(data))
    raise TypeError(f"Cannot build a payload from {type(data).__name__}")


__all__ = [
    "Entity",
    "EntityValue",
    "RecordConstructible",
    "ReturnType",
    "ReturnTypeSpec",
    "Row",
    "make_entity",
    "make_payload",
]
