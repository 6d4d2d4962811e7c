# File: flowgen/validators.py
"""
Flowgen - Draft Validators
===========================
Pure-function checks that run over the **raw** draft before any
``ModelConfig`` is built.

The pydantic models in ``flowgen.models`` are permissive on purpose: a
mistyped optional value is silently dropped.  This module is where such
problems become visible, as warnings, so ``flowgen validate`` can point
at them.  Only problems that would make generation fail (a missing table
for an enabled organizer, a fields section that is not a mapping) are
reported as errors.

Usage::

    from flowgen.validators import validate_draft
    result = validate_draft(models, settings)
    if not result.is_valid:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
import string
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from flowgen.config import build_type_map
from flowgen.models import (
    DEFAULT_ORGANIZER_TYPES,
    SECTION_OVERRIDE_KEYS,
    GeneratorKind,
    GeneratorSettings,
)
from flowgen.type_map import TypeRuleMap

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight issue descriptor (no pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self) -> str:
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            prefix: str = "✗" if item.is_error else "⚠"
            lines.append(f"  {prefix} [{item.code}] {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_PATTERN_PLACEHOLDERS: FrozenSet[str] = frozenset({"root", "model"})

_FIELD_KEY_TYPES: Dict[str, tuple] = {
    "type": (str,),
    "required": (bool,),
    "length": (int,),
    "precision": (int,),
    "attribute": (str,),
    "rules": (list, tuple),
    "messages": (Mapping,),
}

_ORGANIZER_KEYS: FrozenSet[str] = frozenset(DEFAULT_ORGANIZER_TYPES) | frozenset(
    SECTION_OVERRIDE_KEYS
)


def _known_types(type_map: TypeRuleMap) -> FrozenSet[str]:
    return frozenset(type_map.aliases) | frozenset(type_map.rule_map) | frozenset(
        type_map.type_hints
    )


def _section_enabled(raw: Any) -> bool:
    return raw is True or (isinstance(raw, Mapping) and len(raw) > 0)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_model_names(models: Mapping[str, Any]) -> ValidationResult:
    """Model names become class names: they must be identifiers, ideally PascalCase."""
    result: ValidationResult = ValidationResult()

    if not models:
        result.add_warning("EMPTY_DRAFT", "The draft defines no models.")

    for name in models:
        ctx: Dict[str, Any] = {"model": name}
        if not _IDENTIFIER_RE.match(str(name)):
            result.add_error(
                "INVALID_MODEL_NAME",
                f"Model name '{name}' is not a valid identifier.",
                ctx,
            )
        elif not _PASCAL_CASE_RE.match(str(name)):
            result.add_warning(
                "MODEL_NAME_NOT_PASCAL_CASE",
                f"Model name '{name}' is not PascalCase. Generated class names may look odd.",
                ctx,
            )
    return result


def validate_fields(
    model_name: str,
    definition: Mapping[str, Any],
    type_map: TypeRuleMap,
) -> ValidationResult:
    """Check one model's ``fields`` section, field by field."""
    result: ValidationResult = ValidationResult()
    fields: Any = definition.get("fields")

    if fields is None:
        if _section_enabled(definition.get("dto")):
            result.add_warning(
                "DTO_WITHOUT_FIELDS",
                f"Model '{model_name}' generates a DTO but declares no fields.",
                {"model": model_name},
            )
        return result

    if not isinstance(fields, Mapping):
        result.add_error(
            "FIELDS_NOT_MAPPING",
            f"Model '{model_name}': 'fields' must be a mapping of name to definition.",
            {"model": model_name},
        )
        return result

    known: FrozenSet[str] = _known_types(type_map)

    for field_name, config in fields.items():
        ctx: Dict[str, Any] = {"model": model_name, "field": field_name}

        if not _IDENTIFIER_RE.match(str(field_name)):
            result.add_error(
                "INVALID_FIELD_NAME",
                f"Field '{model_name}.{field_name}' is not a valid identifier.",
                ctx,
            )

        if isinstance(config, str):
            config = {"type": config}
        elif config is None:
            config = {}
        elif not isinstance(config, Mapping):
            result.add_warning(
                "FIELD_CONFIG_IGNORED",
                f"Field '{model_name}.{field_name}' must be a type string or a mapping; "
                f"defaults will be used.",
                ctx,
            )
            continue

        for key, expected in _FIELD_KEY_TYPES.items():
            if key not in config:
                continue
            value: Any = config[key]
            wrong: bool = not isinstance(value, expected) or (
                expected == (int,) and isinstance(value, bool)
            )
            if wrong:
                result.add_warning(
                    "FIELD_VALUE_IGNORED",
                    f"Field '{model_name}.{field_name}': '{key}' has type "
                    f"{type(value).__name__} and will be ignored.",
                    {**ctx, "key": key},
                )

        raw_type: Any = config.get("type")
        if isinstance(raw_type, str) and type_map.normalize(raw_type) not in known:
            result.add_warning(
                "UNKNOWN_FIELD_TYPE",
                f"Field '{model_name}.{field_name}' has unknown type '{raw_type}'; "
                f"no default rules apply.",
                {**ctx, "type": raw_type},
            )

        rules: Any = config.get("rules")
        if isinstance(rules, (list, tuple)) and any(not isinstance(r, str) for r in rules):
            result.add_warning(
                "NON_STRING_RULE",
                f"Field '{model_name}.{field_name}' has non-string rules; they will be ignored.",
                ctx,
            )

    return result


def validate_sections(model_name: str, definition: Mapping[str, Any]) -> ValidationResult:
    """Check the ``dto`` and ``organizers`` sections and the table they need."""
    result: ValidationResult = ValidationResult()

    for kind in GeneratorKind:
        raw: Any = definition.get(kind.value)
        ctx: Dict[str, Any] = {"model": model_name, "section": kind.value}

        if raw is None or isinstance(raw, bool):
            continue
        if not isinstance(raw, Mapping):
            result.add_warning(
                "SECTION_IGNORED",
                f"Model '{model_name}': '{kind.value}' must be true or a mapping; "
                f"the section is ignored.",
                ctx,
            )
            continue

        for key in SECTION_OVERRIDE_KEYS:
            if key in raw and not isinstance(raw[key], str):
                result.add_warning(
                    "OVERRIDE_IGNORED",
                    f"Model '{model_name}': '{kind.value}.{key}' is not a string; "
                    f"the default is used.",
                    {**ctx, "key": key},
                )

        if kind is GeneratorKind.ORGANIZERS:
            for key in raw:
                if key not in _ORGANIZER_KEYS:
                    result.add_warning(
                        "UNKNOWN_ORGANIZER_TYPE",
                        f"Model '{model_name}': unknown organizer type '{key}'.",
                        {**ctx, "key": key},
                    )

    table: Any = definition.get("table")
    if _section_enabled(definition.get("organizers")):
        if not isinstance(table, str) or not table.strip():
            result.add_error(
                "MISSING_TABLE",
                f"Model '{model_name}' generates organizers but has no 'table'.",
                {"model": model_name},
            )
    elif table is not None and not isinstance(table, str):
        result.add_warning(
            "TABLE_IGNORED",
            f"Model '{model_name}': 'table' is not a string and will be ignored.",
            {"model": model_name},
        )

    if not any(_section_enabled(definition.get(k.value)) for k in GeneratorKind):
        result.add_warning(
            "NOTHING_TO_GENERATE",
            f"Model '{model_name}' enables neither 'dto' nor 'organizers'.",
            {"model": model_name},
        )

    return result


def _pattern_problem(pattern: str) -> Optional[str]:
    """Why *pattern* cannot be expanded with ``root`` / ``model``, or None."""
    try:
        fields: List[Optional[str]] = [name for _, name, _, _ in string.Formatter().parse(pattern)]
    except ValueError as exc:
        return str(exc)
    unknown: List[str] = sorted(
        {name for name in fields if name is not None and name not in _PATTERN_PLACEHOLDERS}
    )
    if unknown:
        return f"unknown placeholder(s) {', '.join('{' + n + '}' for n in unknown)}"
    return None


def validate_settings(settings: GeneratorSettings) -> ValidationResult:
    """Stub directory on disk and the ``{root}`` / ``{model}`` naming patterns."""
    result: ValidationResult = ValidationResult()
    if settings.stub_path is not None and not Path(settings.stub_path).is_dir():
        result.add_error(
            "STUB_PATH_MISSING",
            f"Stub directory '{settings.stub_path}' does not exist.",
            {"stub_path": settings.stub_path},
        )

    for kind in GeneratorKind:
        kind_settings = settings.for_kind(kind)
        for key in ("namespace", "class_name", "extends"):
            pattern: Optional[str] = getattr(kind_settings, key)
            if pattern is None:
                continue
            problem: Optional[str] = _pattern_problem(pattern)
            if problem:
                result.add_error(
                    "INVALID_NAME_PATTERN",
                    f"Setting '{kind.value}.{key}' = {pattern!r}: {problem}.",
                    {"setting": f"{kind.value}.{key}", "pattern": pattern},
                )
    return result


# ---------------------------------------------------------------------------
# Composite entry point
# ---------------------------------------------------------------------------

def validate_draft(
    models: Mapping[str, Any],
    settings: Optional[GeneratorSettings] = None,
) -> ValidationResult:
    """
    **Master validation entry point** for a parsed draft.

    Runs the name, field, section and settings checks and merges them.
    """
    settings = settings or GeneratorSettings()
    type_map: TypeRuleMap = build_type_map(settings)

    logger.info("Starting draft validation: %d model(s).", len(models))

    result: ValidationResult = ValidationResult()
    result.merge(validate_model_names(models))
    result.merge(validate_settings(settings))

    for name, definition in models.items():
        if not isinstance(definition, Mapping):
            result.add_error(
                "MODEL_NOT_MAPPING",
                f"Model '{name}' must be a mapping.",
                {"model": name},
            )
            continue
        result.merge(validate_fields(str(name), definition, type_map))
        result.merge(validate_sections(str(name), definition))

    if result.is_valid:
        logger.info("Validation PASSED. %s", result.summary())
    else:
        logger.error("Validation FAILED. %s", result.summary())
    return result


__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_model_names",
    "validate_fields",
    "validate_sections",
    "validate_settings",
    "validate_draft",
]
