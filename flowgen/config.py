# File: flowgen/config.py
"""
Flowgen - Model Configuration Wrapper
======================================
``ModelConfig`` wraps one model's definition from the draft and answers
every question a generator asks about it:

- should a DTO / organizer be generated at all?
- which namespace, class name and parent class does it get?
- what is the table name, which organizer operations are enabled?
- which fields does it have? (built lazily once, then cached)

Name resolution is two-tier.  A string override in the kind's section
always wins; a missing or non-string override falls back to the kind
default.  A default that is itself empty is a configuration bug and
raises ``ConfigurationError``.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from flowgen.fields import Field, FieldCollection
from flowgen.models import (
    ConfigurationError,
    GeneratorKind,
    GeneratorSettings,
    KindSettings,
    ModelDefinition,
)
from flowgen.type_map import DEFAULT_TYPE_MAP, TypeRuleMap

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.config")

KindLike = Union[GeneratorKind, str]


def build_type_map(settings: GeneratorSettings) -> TypeRuleMap:
    """Type table for a run: the built-in one plus any ``field_types`` overrides."""
    return DEFAULT_TYPE_MAP.with_overrides(settings.field_types)


class ModelConfig:
    """
    Read-only view over one model definition.

    Args:
        model_name: Model name as keyed in the draft (``User``).
        definition: Raw mapping from the draft, or a ``ModelDefinition``.
        settings: Generator settings; defaults when omitted.
        type_map: Pre-built type table (saves rebuilding it per model).
    """

    def __init__(
        self,
        model_name: str,
        definition: Union[Mapping[str, Any], ModelDefinition, None] = None,
        settings: Optional[GeneratorSettings] = None,
        type_map: Optional[TypeRuleMap] = None,
    ) -> None:
        self._model_name: str = model_name
        if isinstance(definition, ModelDefinition):
            self._definition: ModelDefinition = definition
        else:
            self._definition = ModelDefinition.model_validate(definition or {})
        self._settings: GeneratorSettings = settings or GeneratorSettings()
        self._type_map: TypeRuleMap = type_map or build_type_map(self._settings)

    # -- Basic accessors ---------------------------------------------------

    def get_model_name(self) -> str:
        return self._model_name

    def get_definition(self) -> ModelDefinition:
        return self._definition

    @property
    def settings(self) -> GeneratorSettings:
        return self._settings

    @functools.cached_property
    def fields(self) -> FieldCollection:
        logger.debug(
            "Building field collection for '%s' (%d fields).",
            self._model_name,
            len(self._definition.fields),
        )
        return FieldCollection(self._definition.fields, self._type_map)

    def get_fields(self) -> FieldCollection:
        return self.fields

    def get_field(self, name: str) -> Optional[Field]:
        return self.fields.get(name)

    # -- Eligibility -------------------------------------------------------

    def should_generate(self, kind: KindLike) -> bool:
        """True when the kind's section is ``true`` or a non-empty mapping."""
        return self._definition.section(kind).enabled

    def get_organizer_types(self) -> List[str]:
        return list(self._definition.organizers.types)

    def get_custom_messages(self) -> Dict[str, str]:
        """DTO-level messages appended after the per-field ones."""
        return dict(self._definition.dto.messages)

    # -- Name resolution ---------------------------------------------------

    def get_namespace(self, kind: KindLike) -> str:
        return self._resolve(kind, "namespace", self._default_namespace)

    def get_class_name(self, kind: KindLike) -> str:
        return self._resolve(kind, "className", self._default_class_name)

    def get_extended_class_name(self, kind: KindLike) -> str:
        return self._resolve(kind, "extends", self._default_extended_class_name)

    def get_table_name(self) -> str:
        """
        Table name from the draft.

        There is no implicit pluralisation: a missing or blank table is a
        configuration error.
        """
        table: Optional[str] = self._definition.table
        if table is None or not table.strip():
            raise ConfigurationError("table", entity=self._model_name)
        return table

    def _resolve(self, kind: KindLike, key: str, fallback: Any) -> str:
        kind = GeneratorKind(kind)
        override: Optional[str] = self._definition.section(kind).override(key)
        if override is not None:
            return override

        value: Optional[str] = fallback(kind)
        if value is None or not value.strip():
            raise ConfigurationError(key, kind=kind.value, entity=self._model_name)
        return value

    # -- Kind defaults (override in subclasses) ----------------------------

    def _kind_settings(self, kind: GeneratorKind) -> KindSettings:
        return self._settings.for_kind(kind)

    def _format(self, kind: GeneratorKind, key: str) -> Optional[str]:
        """Expand ``{root}`` / ``{model}`` in the kind's default for *key*."""
        pattern: Optional[str] = getattr(self._kind_settings(kind), key)
        if pattern is None:
            return None
        try:
            return pattern.format(root=self._settings.root_namespace, model=self._model_name)
        except (KeyError, IndexError, AttributeError, ValueError) as exc:
            raise ConfigurationError(
                f"{kind.value}.{key}",
                kind=kind.value,
                entity=self._model_name,
                reason=f"cannot expand pattern {pattern!r} ({type(exc).__name__}: {exc})",
            ) from exc

    def _default_namespace(self, kind: GeneratorKind) -> Optional[str]:
        return self._format(kind, "namespace")

    def _default_class_name(self, kind: GeneratorKind) -> Optional[str]:
        return self._format(kind, "class_name")

    def _default_extended_class_name(self, kind: GeneratorKind) -> Optional[str]:
        return self._format(kind, "extends")

    def __repr__(self) -> str:
        return f"<ModelConfig {self._model_name} ({len(self._definition.fields)} fields)>"


def build_model_configs(
    models: Mapping[str, Any],
    settings: Optional[GeneratorSettings] = None,
) -> List[ModelConfig]:
    """Wrap every model of a draft, sharing one type table."""
    settings = settings or GeneratorSettings()
    type_map: TypeRuleMap = build_type_map(settings)
    return [
        ModelConfig(str(name), definition, settings, type_map)
        for name, definition in models.items()
    ]


__all__: List[str] = [
    "ModelConfig",
    "build_model_configs",
    "build_type_map",
]
