# File: flowgen/fields.py
"""
Flowgen - Field Normalisation
==============================
Turns a terse field declaration into a fully resolved set of validation
rules, messages, labels and type hints.

Everything is derived on access from the immutable ``FieldSpec``; calling
any getter twice yields identical output.  Ordering is deterministic so
generated classes diff cleanly between runs.

Rule resolution (``Field.get_rules``)::

    1. defaults from the type map, then explicit rules
    2. no nullable/sometimes rule → prepend "required" or "sometimes"
       otherwise → move nullable/sometimes rules to the front (stable)
    3. append "max:<length>" for string/text fields with a length
    4. de-duplicate, first occurrence wins
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from flowgen.models import FieldSpec
from flowgen.type_map import DEFAULT_TYPE_MAP, TypeRuleMap
from flowgen.utils import humanize_field_name, rule_key, split_rule

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.fields")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Message keys are ordered by this list; anything else follows alphabetically.
MESSAGE_PRIORITY: Tuple[str, ...] = (
    "required",
    "sometimes",
    "nullable",
    "string",
    "integer",
    "numeric",
    "boolean",
    "date",
    "array",
    "email",
    "min",
    "max",
    "in",
)

_PRIORITY_INDEX: Dict[str, int] = {key: i for i, key in enumerate(MESSAGE_PRIORITY)}

DEFAULT_MESSAGES: Dict[str, str] = {
    "required": "{label} is required.",
    "sometimes": "{label} is optional.",
    "string": "{label} must be text.",
    "integer": "{label} must be an integer.",
    "numeric": "{label} must be a number.",
    "boolean": "{label} must be true or false.",
    "date": "{label} must be a valid date.",
    "array": "{label} must be an array.",
    "email": "{label} must be a valid email address.",
    "max": "{label} cannot exceed {value}.",
    "min": "{label} must be at least {value}.",
    "in": "{label} must be one of: {values}.",
}

FALLBACK_MESSAGE: str = "Validation failed for {label}."

# Rules that gate presence; they always run before type/format rules.
PRESENCE_RULES: Tuple[str, ...] = ("nullable", "sometimes")

# Canonical types that receive a "max:<length>" rule.
LENGTH_TYPES: Tuple[str, ...] = ("string", "text")


def _dedupe(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


# ---------------------------------------------------------------------------
# Field
# ---------------------------------------------------------------------------


class Field:
    """
    Metadata for a single DTO field.

    Args:
        name: Field name as declared in the draft (``first_name``).
        config: Bare type string, raw mapping, or a ``FieldSpec``.
        type_map: Type table to resolve defaults with; the built-in one
            when omitted.
    """

    __slots__ = ("_name", "_spec", "_type_map")

    def __init__(
        self,
        name: str,
        config: Any = None,
        type_map: Optional[TypeRuleMap] = None,
    ) -> None:
        self._name: str = name
        self._spec: FieldSpec = FieldSpec.from_raw(config)
        self._type_map: TypeRuleMap = type_map or DEFAULT_TYPE_MAP

    # -- Plain accessors ---------------------------------------------------

    @property
    def spec(self) -> FieldSpec:
        return self._spec

    def get_name(self) -> str:
        return self._name

    def get_type(self) -> str:
        """Configured raw type, ``"string"`` when absent."""
        return self._spec.type if self._spec.type is not None else "string"

    def get_canonical_type(self) -> str:
        return self._type_map.normalize(self.get_type())

    def is_required(self) -> bool:
        return self._spec.required if self._spec.required is not None else True

    def get_length(self) -> Optional[int]:
        return self._spec.length

    def get_precision(self) -> Optional[int]:
        return self._spec.precision

    def get_attribute_label(self) -> str:
        """Explicit ``attribute`` or the title-cased field name."""
        if self._spec.attribute is not None:
            return self._spec.attribute
        return humanize_field_name(self._name)

    def get_attribute_entry(self) -> Dict[str, str]:
        return {self._name: self.get_attribute_label()}

    def get_type_hint(self) -> str:
        """PHP property type; optional fields are nullable."""
        return self._type_map.type_hint(self.get_type(), not self.is_required())

    # -- Rules -------------------------------------------------------------

    def get_rules(self) -> List[str]:
        """Resolved, de-duplicated validation rules in evaluation order."""
        rules: List[str] = self._type_map.rules(self.get_type()) + list(self._spec.rules)

        has_presence_rule: bool = any(rule.startswith(PRESENCE_RULES) for rule in rules)

        if not has_presence_rule:
            rules.insert(0, "required" if self.is_required() else "sometimes")
        else:
            front: List[str] = [r for r in rules if rule_key(r) in PRESENCE_RULES]
            rest: List[str] = [r for r in rules if rule_key(r) not in PRESENCE_RULES]
            rules = front + rest

        length: Optional[int] = self.get_length()
        if length is not None and self.get_canonical_type() in LENGTH_TYPES:
            rules.append(f"max:{length}")

        return _dedupe(rules)

    # -- Messages ----------------------------------------------------------

    def get_messages(self) -> Dict[str, str]:
        """
        Validation messages keyed ``"<field>.<rule key>"``.

        Explicit messages always win; every resolved rule gets a default
        message when none was given.  The result is ordered by field, then
        by ``MESSAGE_PRIORITY``, then alphabetically.
        """
        messages: Dict[str, str] = {}
        for key, message in self._spec.messages.items():
            messages[key if "." in key else f"{self._name}.{key}"] = message

        for rule in self.get_rules():
            message_key: str = f"{self._name}.{rule_key(rule)}"
            if message_key not in messages:
                messages[message_key] = self._default_message(rule)

        return _order_messages(messages)

    def _default_message(self, rule: str) -> str:
        key, argument = split_rule(rule)
        template: str = DEFAULT_MESSAGES.get(key, FALLBACK_MESSAGE)
        value: str = argument if argument is not None else rule
        return template.format(label=self.get_attribute_label(), value=value, values=value)

    # -- Projections -------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "type": self.get_type(),
            "type_hint": self.get_type_hint(),
            "required": self.is_required(),
            "length": self.get_length(),
            "precision": self.get_precision(),
            "label": self.get_attribute_label(),
            "rules": self.get_rules(),
            "messages": self.get_messages(),
            "attributes": self.get_attribute_entry(),
        }

    def to_renderer_dict(self) -> Dict[str, Any]:
        """Flattened view for templates: rules and messages as lists of records."""
        return {
            "name": self._name,
            "type_hint": self.get_type_hint(),
            "attribute": self.get_attribute_label(),
            "required": self.is_required(),
            "rules": [{"value": rule} for rule in self.get_rules()],
            "messages": [
                {"key": key, "value": message} for key, message in self.get_messages().items()
            ],
        }

    def __repr__(self) -> str:
        flag: str = "" if self.is_required() else "?"
        return f"<Field {self._name}:{self.get_type()}{flag}>"


def _message_sort_key(rule: str) -> Tuple[int, str]:
    return (_PRIORITY_INDEX.get(rule, len(MESSAGE_PRIORITY)), rule)


def _order_messages(messages: Mapping[str, str]) -> Dict[str, str]:
    grouped: Dict[str, Dict[str, str]] = {}
    for key, message in messages.items():
        field_name, _, rule = key.partition(".")
        grouped.setdefault(field_name, {})[rule] = message

    ordered: Dict[str, str] = {}
    for field_name, rules in grouped.items():
        for rule in sorted(rules, key=_message_sort_key):
            ordered[f"{field_name}.{rule}"] = rules[rule]
    return ordered


# ---------------------------------------------------------------------------
# FieldCollection
# ---------------------------------------------------------------------------


class FieldCollection:
    """
    Ordered, read-only collection of ``Field`` objects keyed by name.

    Insertion order is declaration order in the draft.  Filters return new
    collections and never touch this one.
    """

    __slots__ = ("_fields",)

    def __init__(
        self,
        fields: Optional[Mapping[str, Any]] = None,
        type_map: Optional[TypeRuleMap] = None,
    ) -> None:
        self._fields: Dict[str, Field] = {}
        for name, config in (fields or {}).items():
            if isinstance(config, Field):
                self._fields[name] = config
            else:
                self._fields[name] = Field(name, config, type_map)

    @classmethod
    def from_fields(cls, fields: Mapping[str, Field]) -> "FieldCollection":
        return cls(fields)

    def get(self, name: str) -> Optional[Field]:
        return self._fields.get(name)

    def count(self) -> int:
        return len(self._fields)

    def keys(self) -> List[str]:
        return list(self._fields)

    def all(self) -> List[Field]:
        return list(self._fields.values())

    def items(self) -> List[Tuple[str, Field]]:
        return list(self._fields.items())

    def filter(self, predicate: Callable[[Field], bool]) -> "FieldCollection":
        return FieldCollection.from_fields(
            {name: f for name, f in self._fields.items() if predicate(f)}
        )

    def required(self) -> "FieldCollection":
        return self.filter(lambda f: f.is_required())

    def optional(self) -> "FieldCollection":
        return self.filter(lambda f: not f.is_required())

    def of_type(self, type_name: str) -> "FieldCollection":
        """Fields whose configured raw type equals *type_name* exactly."""
        return self.filter(lambda f: f.get_type() == type_name)

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __getitem__(self, name: str) -> Field:
        return self._fields[name]

    def __repr__(self) -> str:
        return f"<FieldCollection {self.keys()}>"


__all__: List[str] = [
    "Field",
    "FieldCollection",
    "MESSAGE_PRIORITY",
    "DEFAULT_MESSAGES",
    "FALLBACK_MESSAGE",
]
