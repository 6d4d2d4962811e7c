# File: flowgen/type_map.py
"""
Flowgen - Type / Rule Map
==========================
Canonical mapping between abstract field types and their default
validation rules and target-language (PHP) type hints.

Raw types are normalised through an alias table first, so database-ish
spellings resolve to one canonical key:

    >>> DEFAULT_TYPE_MAP.rules("int") == DEFAULT_TYPE_MAP.rules("integer")
    True
    >>> DEFAULT_TYPE_MAP.type_hint("decimal", nullable=False)
    'float'
    >>> DEFAULT_TYPE_MAP.type_hint("datetime", nullable=True)
    '?\\\\DateTimeInterface'

Lookups never raise: unknown types have no default rules and fall back to
the ``string`` type hint.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.type_map")

# ---------------------------------------------------------------------------
# Built-in tables
# ---------------------------------------------------------------------------

_ALIASES: Dict[str, str] = {
    "int": "integer",
    "decimal": "numeric",
    "float": "numeric",
    "double": "numeric",
    "number": "numeric",
    "bool": "boolean",
    "datetime": "date",
    "timestamp": "date",
    "varchar": "string",
    "char": "string",
    "json": "array",
}

_RULES: Dict[str, Tuple[str, ...]] = {
    "string": ("string",),
    "text": ("string",),
    "integer": ("integer",),
    "numeric": ("numeric",),
    "boolean": ("boolean",),
    "date": ("date",),
    "array": ("array",),
    "email": ("string", "email"),
}

_TYPE_HINTS: Dict[str, str] = {
    "string": "string",
    "text": "string",
    "integer": "int",
    "numeric": "float",
    "boolean": "bool",
    "date": "\\DateTimeInterface",
    "array": "array",
    "email": "string",
}


class TypeRuleMap(BaseModel):
    """
    Immutable lookup tables for type normalisation.

    The default instance (``DEFAULT_TYPE_MAP``) carries the built-in
    tables.  Projects that need extra types build their own instance with
    :meth:`with_overrides` and hand it to ``Field`` / ``ModelConfig``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    aliases: Dict[str, str] = Field(default_factory=lambda: dict(_ALIASES))
    rule_map: Dict[str, Tuple[str, ...]] = Field(default_factory=lambda: dict(_RULES))
    type_hints: Dict[str, str] = Field(default_factory=lambda: dict(_TYPE_HINTS))
    fallback_hint: str = "string"
    nullable_marker: str = "?"

    def normalize(self, raw_type: str) -> str:
        """Lower-case *raw_type* and resolve aliases (``int`` → ``integer``)."""
        lower: str = str(raw_type).strip().lower()
        return self.aliases.get(lower, lower)

    def rules(self, raw_type: str) -> List[str]:
        """Default validation rules for a raw or canonical type."""
        return list(self.rule_map.get(self.normalize(raw_type), ()))

    def type_hint(self, raw_type: str, nullable: bool = False) -> str:
        """PHP property type for *raw_type*, prefixed with ``?`` when nullable."""
        hint: str = self.type_hints.get(self.normalize(raw_type), self.fallback_hint)
        return f"{self.nullable_marker}{hint}" if nullable else hint

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "TypeRuleMap":
        """
        Return a copy with entries merged in from a settings mapping.

        Recognised keys: ``aliases`` (raw → canonical), ``rules``
        (canonical → list of rules) and ``type_hints`` (canonical → hint).
        Keys are lower-cased; malformed entries are skipped.
        """
        if not overrides:
            return self

        aliases: Dict[str, str] = dict(self.aliases)
        rule_map: Dict[str, Tuple[str, ...]] = dict(self.rule_map)
        type_hints: Dict[str, str] = dict(self.type_hints)

        for raw, canonical in (overrides.get("aliases") or {}).items():
            if isinstance(canonical, str):
                aliases[str(raw).lower()] = canonical.lower()

        for canonical, rules in (overrides.get("rules") or {}).items():
            if isinstance(rules, (list, tuple)):
                rule_map[str(canonical).lower()] = tuple(r for r in rules if isinstance(r, str))

        for canonical, hint in (overrides.get("type_hints") or {}).items():
            if isinstance(hint, str) and hint:
                type_hints[str(canonical).lower()] = hint

        logger.debug(
            "Type map extended: %d aliases, %d rule sets, %d type hints.",
            len(aliases),
            len(rule_map),
            len(type_hints),
        )
        return self.model_copy(
            update={"aliases": aliases, "rule_map": rule_map, "type_hints": type_hints}
        )


DEFAULT_TYPE_MAP: TypeRuleMap = TypeRuleMap()


__all__: List[str] = [
    "TypeRuleMap",
    "DEFAULT_TYPE_MAP",
]
