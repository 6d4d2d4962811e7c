"""
tests/test_fields.py
Unit tests for flowgen.fields (Field, FieldCollection).

Tests cover:
- Defaults for missing or mistyped configuration
- Rule resolution (presence rule, reordering, max length, de-duplication)
- Message generation, overrides and ordering
- Labels, type hints and renderer projections
- FieldCollection filtering and iteration
"""

from __future__ import annotations

from typing import Any, Dict

import pytest

from flowgen.fields import Field, FieldCollection
from flowgen.models import FieldSpec
from flowgen.type_map import DEFAULT_TYPE_MAP


# ===========================================================================
# Configuration defaults
# ===========================================================================


class TestFieldDefaults:
    """Missing or wrong-typed values fall back silently."""

    def test_bare_type_string(self) -> None:
        field = Field("age", "integer")
        assert field.get_type() == "integer"
        assert field.is_required() is True

    def test_no_config(self) -> None:
        field = Field("name")
        assert field.get_type() == "string"
        assert field.is_required() is True
        assert field.get_length() is None
        assert field.get_precision() is None

    def test_mistyped_values_are_dropped(self) -> None:
        field = Field(
            "name",
            {"type": 5, "required": "yes", "length": "10", "attribute": 3, "rules": "x"},
        )
        assert field.get_type() == "string"
        assert field.is_required() is True
        assert field.get_length() is None
        assert field.get_attribute_label() == "Name"
        assert field.get_rules() == ["required", "string"]

    def test_boolean_length_is_not_an_int(self) -> None:
        assert Field("name", {"length": True}).get_length() is None

    def test_non_string_rules_are_filtered(self) -> None:
        field = Field("name", {"rules": ["alpha", 3, None]})
        assert field.get_rules() == ["required", "string", "alpha"]

    def test_accepts_field_spec(self) -> None:
        spec = FieldSpec.from_raw({"type": "int", "required": False})
        field = Field("count", spec)
        assert field.spec is spec
        assert field.is_required() is False


# ===========================================================================
# Rules
# ===========================================================================


class TestFieldRules:
    """``Field.get_rules`` ordering and content."""

    def test_required_string(self) -> None:
        assert Field("name", "string").get_rules() == ["required", "string"]

    def test_optional_string_with_length(self) -> None:
        field = Field("email", {"type": "string", "required": False, "length": 255})
        assert field.get_rules() == ["sometimes", "string", "max:255"]

    def test_defaults_come_before_explicit(self) -> None:
        field = Field("email", {"type": "string", "rules": ["email", "unique:users"]})
        assert field.get_rules() == ["required", "string", "email", "unique:users"]

    def test_nullable_moves_to_front(self) -> None:
        field = Field("nickname", {"type": "string", "rules": ["alpha", "nullable"]})
        assert field.get_rules() == ["nullable", "string", "alpha"]

    def test_presence_rules_keep_relative_order(self) -> None:
        field = Field("x", {"type": "int", "rules": ["min:1", "sometimes", "nullable"]})
        assert field.get_rules() == ["sometimes", "nullable", "integer", "min:1"]

    def test_presence_rule_suppresses_required(self) -> None:
        rules = Field("x", {"type": "string", "required": True, "rules": ["nullable"]}).get_rules()
        assert "required" not in rules
        assert "sometimes" not in rules

    def test_duplicates_removed_first_wins(self) -> None:
        field = Field("name", {"type": "string", "rules": ["string", "required"]})
        assert field.get_rules() == ["required", "string"]

    def test_max_only_for_string_types(self) -> None:
        assert Field("n", {"type": "int", "length": 10}).get_rules() == ["required", "integer"]
        assert Field("b", {"type": "text", "length": 1000}).get_rules()[-1] == "max:1000"
        assert Field("v", {"type": "varchar", "length": 20}).get_rules()[-1] == "max:20"

    def test_unknown_type_has_only_presence(self) -> None:
        assert Field("shape", "geometry").get_rules() == ["required"]

    def test_alias_type(self) -> None:
        assert Field("total", "decimal").get_rules() == ["required", "numeric"]

    def test_rules_are_idempotent(self) -> None:
        field = Field("email", {"type": "email", "rules": ["nullable"], "length": 100})
        assert field.get_rules() == field.get_rules()

    def test_no_duplicate_rules(self) -> None:
        field = Field(
            "x",
            {"type": "email", "rules": ["email", "string", "nullable", "nullable"], "length": 5},
        )
        rules = field.get_rules()
        assert len(rules) == len(set(rules))


# ===========================================================================
# Messages
# ===========================================================================


class TestFieldMessages:
    """``Field.get_messages`` defaults, overrides and order."""

    def test_default_messages(self) -> None:
        messages = Field("name", "string").get_messages()
        assert messages == {
            "name.required": "Name is required.",
            "name.string": "Name must be text.",
        }

    def test_every_rule_has_a_message(self) -> None:
        field = Field(
            "status",
            {"type": "string", "length": 20, "rules": ["in:draft,sent", "uuid"]},
        )
        keys = set(field.get_messages())
        for rule in field.get_rules():
            assert f"status.{rule.split(':')[0]}" in keys

    def test_argument_substitution(self) -> None:
        messages = Field("email", {"type": "string", "length": 255}).get_messages()
        assert messages["email.max"] == "Email cannot exceed 255."

    def test_in_rule_lists_values(self) -> None:
        messages = Field("status", {"rules": ["in:draft,sent"]}).get_messages()
        assert messages["status.in"] == "Status must be one of: draft,sent."

    def test_unknown_rule_uses_fallback(self) -> None:
        messages = Field("id", {"rules": ["uuid"]}).get_messages()
        assert messages["id.uuid"] == "Validation failed for Id."

    def test_email_message(self) -> None:
        messages = Field("email", "email").get_messages()
        assert messages["email.email"] == "Email must be a valid email address."

    def test_label_used_in_messages(self) -> None:
        messages = Field("dob", {"type": "date", "attribute": "Date of birth"}).get_messages()
        assert messages["dob.date"] == "Date of birth must be a valid date."

    def test_explicit_messages_win(self) -> None:
        field = Field("name", {"type": "string", "messages": {"required": "Tell us your name."}})
        assert field.get_messages()["name.required"] == "Tell us your name."

    def test_explicit_message_keys_are_prefixed(self) -> None:
        field = Field("name", {"messages": {"unique": "Taken."}})
        assert field.get_messages()["name.unique"] == "Taken."

    def test_message_order_follows_priority(self) -> None:
        field = Field(
            "email",
            {
                "type": "string",
                "required": False,
                "length": 255,
                "rules": ["unique:users", "email"],
            },
        )
        assert list(field.get_messages()) == [
            "email.sometimes",
            "email.string",
            "email.email",
            "email.max",
            "email.unique",
        ]

    def test_non_priority_rules_sorted_alphabetically(self) -> None:
        field = Field("code", {"rules": ["uuid", "alpha", "distinct"]})
        keys = list(field.get_messages())
        assert keys[:2] == ["code.required", "code.string"]
        assert keys[2:] == ["code.alpha", "code.distinct", "code.uuid"]


# ===========================================================================
# Labels, hints, projections
# ===========================================================================


class TestFieldProjections:
    """Labels, type hints, dict views."""

    def test_label_from_name(self) -> None:
        assert Field("first_name").get_attribute_label() == "First Name"

    def test_explicit_label(self) -> None:
        field = Field("dob", {"attribute": "Date of birth"})
        assert field.get_attribute_label() == "Date of birth"
        assert field.get_attribute_entry() == {"dob": "Date of birth"}

    def test_type_hint_nullable_when_optional(self) -> None:
        assert Field("age", {"type": "int", "required": False}).get_type_hint() == "?int"
        assert Field("age", "int").get_type_hint() == "int"

    def test_to_dict(self) -> None:
        data: Dict[str, Any] = Field("name", {"type": "string", "length": 50}).to_dict()
        assert data["name"] == "name"
        assert data["rules"] == ["required", "string", "max:50"]
        assert data["label"] == "Name"
        assert data["length"] == 50

    def test_to_renderer_dict(self) -> None:
        data = Field("name", "string").to_renderer_dict()
        assert data["attribute"] == "Name"
        assert data["rules"] == [{"value": "required"}, {"value": "string"}]
        assert data["messages"][0] == {"key": "name.required", "value": "Name is required."}

    def test_custom_type_map(self) -> None:
        type_map = DEFAULT_TYPE_MAP.with_overrides({"rules": {"uuid": ["uuid"]}})
        assert Field("id", "uuid", type_map).get_rules() == ["required", "uuid"]

    def test_repr(self) -> None:
        assert repr(Field("age", {"type": "int", "required": False})) == "<Field age:int?>"


# ===========================================================================
# FieldCollection
# ===========================================================================


@pytest.fixture()
def collection() -> FieldCollection:
    return FieldCollection(
        {
            "name": "string",
            "email": {"type": "string", "required": False},
            "age": {"type": "int", "required": False},
            "bio": "text",
        }
    )


class TestFieldCollection:
    """Ordered, read-only field collection."""

    def test_preserves_declaration_order(self, collection: FieldCollection) -> None:
        assert collection.keys() == ["name", "email", "age", "bio"]
        assert [f.get_name() for f in collection] == ["name", "email", "age", "bio"]

    def test_count_and_len(self, collection: FieldCollection) -> None:
        assert collection.count() == 4
        assert len(collection) == 4

    def test_get(self, collection: FieldCollection) -> None:
        assert collection.get("email").get_name() == "email"
        assert collection.get("missing") is None
        assert "bio" in collection
        assert collection["bio"].get_type() == "text"

    def test_required_and_optional(self, collection: FieldCollection) -> None:
        assert collection.required().keys() == ["name", "bio"]
        assert collection.optional().keys() == ["email", "age"]

    def test_of_type_matches_raw_type(self, collection: FieldCollection) -> None:
        assert collection.of_type("int").keys() == ["age"]
        assert collection.of_type("integer").keys() == []

    def test_filters_do_not_mutate(self, collection: FieldCollection) -> None:
        collection.required()
        assert collection.count() == 4

    def test_items_and_all(self, collection: FieldCollection) -> None:
        assert [name for name, _ in collection.items()] == collection.keys()
        assert len(collection.all()) == 4

    def test_empty(self) -> None:
        empty = FieldCollection()
        assert empty.count() == 0
        assert list(empty) == []

    def test_accepts_field_objects(self) -> None:
        field = Field("name", "string")
        assert FieldCollection.from_fields({"name": field}).get("name") is field
