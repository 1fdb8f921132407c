"""
Declarative payload validation backed by pydantic.

Rules are declared per field as a ``|``-separated expression or a list of
rule strings (use the list form when a ``regex`` pattern contains ``|``)::

    {
        "name": "required|minLength:3|maxLength:64",
        "email": "required|email",
        "age": "integer|greater:0",
        "status": ["in:active,blocked"],
    }

Each distinct set of fields compiles once to a pydantic model. Failed checks
are translated back to rule messages from the language catalog, with the
field label substituted for ``{field}`` and the rule argument for ``{0}``.
Empty values (``None`` or ``""``) count as absent: ``required`` fails on
them and every other rule skips them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Mapping, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, create_model

from recordmodel.exceptions import ConfigurationError
from recordmodel.language import Language
from recordmodel.utils.logging import get_logger

log = get_logger(__name__)

RuleExpression = Union[str, Sequence[str]]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_TYPE_RULES: Dict[str, type] = {
    "string": str,
    "integer": int,
    "number": float,
    "bool": bool,
}
_TEXT_RULES = frozenset({"email", "minLength", "maxLength", "exactLength", "regex"})
_ARG_RULES = frozenset({"minLength", "maxLength", "exactLength", "greater", "less", "regex", "in"})
KNOWN_RULES = frozenset({"required", "optional", "in"}) | set(_TYPE_RULES) | _TEXT_RULES | {"greater", "less"}

# pydantic error type -> rule whose message explains it
_ERROR_RULES: Dict[str, str] = {
    "missing": "required",
    "string_type": "string",
    "int_parsing": "integer",
    "int_type": "integer",
    "int_from_float": "integer",
    "float_parsing": "number",
    "float_type": "number",
    "bool_parsing": "bool",
    "bool_type": "bool",
    "literal_error": "in",
    "greater_than": "greater",
    "less_than": "less",
}


@dataclass(frozen=True)
class Rule:
    name: str
    args: Tuple[str, ...] = ()


def parse_rules(expression: RuleExpression) -> Tuple[Rule, ...]:
    parts = expression.split("|") if isinstance(expression, str) else list(expression)
    rules: List[Rule] = []
    for part in parts:
        part = part.strip()
        if not part:
            continue
        name, _, arg = part.partition(":")
        if name not in KNOWN_RULES:
            raise ConfigurationError(f"Unknown validation rule '{name}'")
        if name in _ARG_RULES and not arg:
            raise ConfigurationError(f"Validation rule '{name}' requires an argument")
        if name == "in":
            args: Tuple[str, ...] = tuple(item.strip() for item in arg.split(","))
        else:
            args = (arg,) if arg else ()
        rules.append(Rule(name, args))
    return tuple(rules)


def _as_text(value: Any) -> Any:
    return value if isinstance(value, str) else str(value)


def _int_arg(field: str, rule: Rule) -> int:
    try:
        return int(rule.args[0])
    except ValueError:
        raise ConfigurationError(
            f"Rule '{rule.name}' of field '{field}' requires an integer argument"
        ) from None


def _float_arg(field: str, rule: Rule) -> float:
    try:
        return float(rule.args[0])
    except ValueError:
        raise ConfigurationError(
            f"Rule '{rule.name}' of field '{field}' requires a numeric argument"
        ) from None


def _field_definition(field: str, rules: Tuple[Rule, ...]) -> Tuple[Any, Any]:
    """Build the ``(annotation, FieldInfo)`` pair for one field."""
    names = {rule.name for rule in rules}
    types = [_TYPE_RULES[name] for name in names if name in _TYPE_RULES]
    if len(types) > 1:
        raise ConfigurationError(f"Field '{field}' declares more than one type rule")
    if names & _TEXT_RULES and types and types[0] is not str:
        raise ConfigurationError(f"Field '{field}' mixes text rules with a non-text type")
    if {"email", "regex"} <= names:
        raise ConfigurationError(f"Field '{field}' can not use both 'email' and 'regex'")

    annotation: Any = types[0] if types else Any
    if annotation is Any and names & _TEXT_RULES:
        annotation = str
    if annotation is Any and names & {"greater", "less"}:
        annotation = float

    constraints: Dict[str, Any] = {}
    for rule in rules:
        if rule.name == "minLength":
            constraints["min_length"] = _int_arg(field, rule)
        elif rule.name == "maxLength":
            constraints["max_length"] = _int_arg(field, rule)
        elif rule.name == "exactLength":
            constraints["min_length"] = constraints["max_length"] = _int_arg(field, rule)
        elif rule.name == "greater":
            constraints["gt"] = _float_arg(field, rule)
        elif rule.name == "less":
            constraints["lt"] = _float_arg(field, rule)
        elif rule.name == "email":
            constraints["pattern"] = EMAIL_PATTERN
        elif rule.name == "regex":
            constraints["pattern"] = rule.args[0]
        elif rule.name == "in":
            annotation = Annotated[Literal[rule.args], BeforeValidator(_as_text)]

    if "required" in names:
        return annotation, Field(..., **constraints)
    return Optional[annotation], Field(None, **constraints)


class Validation:
    """
    Validate record payloads against a rule set.

    The last validation's errors are kept until the next ``validate`` or
    ``validate_only`` call.
    """

    def __init__(
        self,
        language: Optional[Language] = None,
        rules: Optional[Mapping[str, RuleExpression]] = None,
        labels: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.language = language or Language()
        self._rules: Dict[str, Tuple[Rule, ...]] = {}
        self._labels: Dict[str, str] = {}
        self._errors: Dict[str, str] = {}
        self._schemas: Dict[FrozenSet[str], Type[BaseModel]] = {}
        if rules is not None:
            self.set_rules(rules)
        if labels is not None:
            self.set_labels(labels)

    def set_rules(self, rules: Mapping[str, RuleExpression]) -> "Validation":
        self._rules = {field: parse_rules(expression) for field, expression in rules.items()}
        self._schemas.clear()
        return self

    def get_rules(self) -> Dict[str, Tuple[Rule, ...]]:
        return dict(self._rules)

    def set_labels(self, labels: Mapping[str, str]) -> "Validation":
        self._labels = dict(labels)
        return self

    def get_label(self, field: str) -> str:
        return self._labels.get(field, field)

    def get_errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def get_error(self, field: str) -> Optional[str]:
        return self._errors.get(field)

    def validate(self, data: Mapping[str, Any]) -> bool:
        """Check ``data`` against every rule."""
        return self._run(frozenset(self._rules), data)

    def validate_only(self, data: Mapping[str, Any]) -> bool:
        """Check only the rules of fields present in ``data``."""
        return self._run(frozenset(field for field in data if field in self._rules), data)

    def _schema(self, fields: FrozenSet[str]) -> Type[BaseModel]:
        schema = self._schemas.get(fields)
        if schema is None:
            definitions = {
                field: _field_definition(field, self._rules[field]) for field in sorted(fields)
            }
            schema = create_model(
                "ValidationPayload",
                __config__=ConfigDict(
                    extra="ignore", regex_engine="python-re", protected_namespaces=()
                ),
                **definitions,
            )
            self._schemas[fields] = schema
        return schema

    def _run(self, fields: FrozenSet[str], data: Mapping[str, Any]) -> bool:
        self._errors = {}
        values = {
            field: value
            for field, value in data.items()
            if field in fields and value is not None and value != ""
        }
        try:
            self._schema(fields).model_validate(values)
        except ValidationError as exc:
            for error in exc.errors():
                if not error["loc"]:
                    continue
                field = str(error["loc"][0])
                if field not in self._errors:
                    self._errors[field] = self._message(field, error["type"])
            log.debug("Validation failed", extra={"fields": sorted(self._errors)})
            return False
        return True

    def _rule_for_error(self, field: str, error_type: str) -> Optional[Rule]:
        rules = {rule.name: rule for rule in self._rules.get(field, ())}
        if error_type in ("string_too_short", "string_too_long"):
            if "exactLength" in rules:
                return rules["exactLength"]
            name = "minLength" if error_type == "string_too_short" else "maxLength"
            return rules.get(name)
        if error_type == "string_pattern_mismatch":
            return rules.get("email") or rules.get("regex")
        name = _ERROR_RULES.get(error_type)
        if name is None:
            return None
        return rules.get(name, Rule(name))

    def _message(self, field: str, error_type: str) -> str:
        rule = self._rule_for_error(field, error_type)
        label = self.get_label(field)
        if rule is None:
            return self.language.lang("validation.invalid", field=label)
        args = rule.args if rule.name != "in" else (", ".join(rule.args),)
        return self.language.lang(f"validation.{rule.name}", args, field=label)


__all__ = [
    "EMAIL_PATTERN",
    "KNOWN_RULES",
    "Rule",
    "RuleExpression",
    "Validation",
    "parse_rules",
]
