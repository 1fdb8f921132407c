from __future__ import annotations

import pytest

from recordmodel.exceptions import ConfigurationError
from recordmodel.language import Language
from recordmodel.validation import Rule, Validation, parse_rules

RULES = {
    "name": "required|minLength:3|maxLength:10",
    "email": "required|email",
}


@pytest.fixture
def validation() -> Validation:
    return Validation(rules=RULES, labels={"name": "Name"})


def test_parse_rules_splits_names_and_arguments() -> None:
    assert parse_rules("required|minLength:3|in:a, b") == (
        Rule("required"),
        Rule("minLength", ("3",)),
        Rule("in", ("a", "b")),
    )


def test_parse_rules_accepts_lists_for_patterns_with_pipes() -> None:
    assert parse_rules(["regex:^(a|b)$"]) == (Rule("regex", ("^(a|b)$",)),)


def test_unknown_rule_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="Unknown validation rule 'shout'"):
        Validation(rules={"name": "shout"})


def test_rule_without_argument_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="requires an argument"):
        parse_rules("minLength")


def test_valid_payload_passes_and_clears_errors(validation: Validation) -> None:
    assert validation.validate({"name": "Al"}) is False
    assert validation.validate({"name": "Alice", "email": "alice@example.com"}) is True
    assert validation.get_errors() == {}


def test_min_length_message_uses_label_and_argument(validation: Validation) -> None:
    assert validation.validate({"name": "Al", "email": "a@b.com"}) is False

    assert validation.get_errors() == {
        "name": "The Name field requires 3 or more characters in length."
    }


def test_required_message_uses_raw_field_name_without_label(validation: Validation) -> None:
    validation.validate({"name": "Alice"})

    assert validation.get_error("email") == "The email field is required."


def test_empty_string_fails_required(validation: Validation) -> None:
    validation.validate({"name": "", "email": "a@b.com"})

    assert validation.get_error("name") == "The Name field is required."


def test_max_length_and_email_messages(validation: Validation) -> None:
    validation.validate({"name": "Maximilian Jr", "email": "not-an-email"})

    errors = validation.get_errors()
    assert errors["name"] == "The Name field requires 10 or less characters in length."
    assert errors["email"] == "The email field requires a valid email address."


def test_validate_only_checks_present_fields(validation: Validation) -> None:
    assert validation.validate_only({"name": "Alice"}) is True
    assert validation.validate({"name": "Alice"}) is False


def test_validate_only_still_rejects_present_invalid_fields(validation: Validation) -> None:
    assert validation.validate_only({"name": "Al"}) is False
    assert list(validation.get_errors()) == ["name"]


def test_optional_fields_skip_empty_values() -> None:
    validation = Validation(rules={"nickname": "minLength:3"})

    assert validation.validate({}) is True
    assert validation.validate({"nickname": None}) is True
    assert validation.validate({"nickname": ""}) is True
    assert validation.validate({"nickname": "Al"}) is False


def test_type_and_range_rules() -> None:
    validation = Validation(rules={"age": "required|integer|greater:0|less:150"})

    assert validation.validate({"age": "42"}) is True
    assert validation.validate({"age": "forty"}) is False
    assert validation.get_error("age") == "The age field requires an integer."
    assert validation.validate({"age": 0}) is False
    assert validation.get_error("age") == "The age field must be greater than 0."
    assert validation.validate({"age": 200}) is False
    assert validation.get_error("age") == "The age field must be less than 150."


def test_in_rule_compares_text_values() -> None:
    validation = Validation(rules={"status": "in:active,blocked", "level": "in:1,2"})

    assert validation.validate({"status": "active", "level": 2}) is True
    assert validation.validate({"status": "gone"}) is False
    assert validation.get_error("status") == "The status field does not have an allowed value."


def test_exact_length_and_regex_rules() -> None:
    validation = Validation(rules={"code": "exactLength:2", "slug": ["regex:^[a-z]+(-[a-z]+)*$"]})

    assert validation.validate({"code": "BR", "slug": "hello-world"}) is True
    assert validation.validate({"code": "BRA", "slug": "Hello World"}) is False
    assert validation.get_errors() == {
        "code": "The code field requires exactly 2 characters in length.",
        "slug": "The slug field does not match the required pattern.",
    }


def test_conflicting_type_rules_are_configuration_errors() -> None:
    validation = Validation(rules={"age": "integer|minLength:2"})

    with pytest.raises(ConfigurationError, match="non-text type"):
        validation.validate({"age": 10})


def test_messages_follow_the_language_locale() -> None:
    validation = Validation(Language("pt-br"), rules={"name": "required"}, labels={"name": "Nome"})

    validation.validate({})

    assert validation.get_error("name") == "O campo Nome é obrigatório."


def test_set_rules_resets_compiled_schemas() -> None:
    validation = Validation(rules={"name": "required"})
    assert validation.validate({}) is False

    validation.set_rules({"name": "minLength:1"})

    assert validation.validate({}) is True
