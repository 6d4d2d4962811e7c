# File: flowgen/models.py
"""
Flowgen - Core Data Models
===========================
Pydantic V2 models describing the draft input (field specs, DTO and
organizer sections, model definitions), the generator settings and the
generated output records.

The draft tree is validated **once** at this boundary.  Every model that
consumes user input is deliberately permissive: a wrong-typed optional
value is dropped and its documented default takes over, so downstream
code never re-probes raw dictionaries.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.models")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(Exception):
    """
    Fatal configuration problem for one model / generator kind.

    Raised when a required value has neither an explicit override nor a
    usable default (the table name, or an empty kind default), or when a
    default naming pattern cannot be formatted (*reason* is then set).
    """

    def __init__(
        self,
        key: str,
        kind: Optional[str] = None,
        entity: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.key: str = key
        self.kind: Optional[str] = kind
        self.entity: Optional[str] = entity
        self.reason: Optional[str] = reason
        where: List[str] = []
        if entity:
            where.append(f"model '{entity}'")
        if kind:
            where.append(f"generator '{kind}'")
        suffix: str = f" ({', '.join(where)})" if where else ""
        if reason:
            super().__init__(f"Invalid configuration value '{key}'{suffix}: {reason}.")
        else:
            super().__init__(f"Missing required configuration value '{key}'{suffix}.")


class DraftLoadError(ValueError):
    """The draft file could not be read or parsed."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class GeneratorKind(str, Enum):
    """Closed set of generator kinds; values match the draft section keys."""

    DTO = "dto"
    ORGANIZERS = "organizers"


class OrganizerType(str, Enum):
    """Operations an organizer class can handle."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"


DEFAULT_ORGANIZER_TYPES: Tuple[str, ...] = tuple(t.value for t in OrganizerType)

# Keys inside a dto/organizers section that override generated names.
SECTION_OVERRIDE_KEYS: Tuple[str, ...] = ("namespace", "className", "extends")


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_INPUT_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)

_SETTINGS_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Field specification
# ---------------------------------------------------------------------------


class FieldSpec(BaseModel):
    """
    One field declaration from the draft.

    Accepts a bare type string (``"integer"``) or a mapping.  Values of the
    wrong type are discarded before validation.
    """

    model_config = _INPUT_CONFIG

    type: Optional[str] = Field(default=None, description="Raw field type.")
    required: Optional[bool] = Field(default=None, description="Required flag.")
    length: Optional[int] = Field(default=None, description="Max length (string/text).")
    precision: Optional[int] = Field(default=None, description="Numeric precision.")
    attribute: Optional[str] = Field(default=None, description="Display label override.")
    rules: Tuple[str, ...] = Field(default=(), description="Explicit rules, in order.")
    messages: Dict[str, str] = Field(
        default_factory=dict, description="Explicit message overrides."
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_mistyped_values(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"type": data}
        if not isinstance(data, Mapping):
            return {}

        clean: Dict[str, Any] = {}

        value: Any = data.get("type")
        if isinstance(value, str) and value.strip():
            clean["type"] = value

        value = data.get("required")
        if isinstance(value, bool):
            clean["required"] = value

        for key in ("length", "precision"):
            value = data.get(key)
            if _is_int(value) and value >= 0:
                clean[key] = value

        value = data.get("attribute")
        if isinstance(value, str):
            clean["attribute"] = value

        value = data.get("rules")
        if isinstance(value, (list, tuple)):
            clean["rules"] = tuple(r for r in value if isinstance(r, str) and r)

        value = data.get("messages")
        if isinstance(value, Mapping):
            clean["messages"] = {
                k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)
            }

        return clean

    @classmethod
    def from_raw(cls, raw: Any) -> "FieldSpec":
        """Build from a type string, a mapping or an existing ``FieldSpec``."""
        if isinstance(raw, FieldSpec):
            return raw
        return cls.model_validate(raw)


# ---------------------------------------------------------------------------
# Generator sections
# ---------------------------------------------------------------------------


class _SectionBase(BaseModel):
    """Name overrides shared by every generator section."""

    model_config = _INPUT_CONFIG

    namespace: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="className")
    extends: Optional[str] = None

    @classmethod
    def _string_overrides(cls, data: Mapping[str, Any]) -> Dict[str, str]:
        return {
            key: data[key]
            for key in SECTION_OVERRIDE_KEYS
            if isinstance(data.get(key), str)
        }

    def override(self, key: str) -> Optional[str]:
        """Return the override stored under a draft key (``className`` etc.)."""
        if key == "className":
            return self.class_name
        return getattr(self, key, None)


class DtoSection(_SectionBase):
    """The ``dto:`` block of a model (``true`` or a mapping)."""

    enabled: bool = False
    messages: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if data is True:
            return {"enabled": True}
        if not isinstance(data, Mapping):
            return {"enabled": False}

        clean: Dict[str, Any] = cls._string_overrides(data)
        clean["enabled"] = len(data) > 0
        messages: Any = data.get("messages")
        if isinstance(messages, Mapping):
            clean["messages"] = {
                k: v for k, v in messages.items() if isinstance(k, str) and isinstance(v, str)
            }
        return clean


class OrganizerSection(_SectionBase):
    """The ``organizers:`` block of a model (``true`` or a type → bool map)."""

    enabled: bool = False
    all_types: bool = False
    toggles: Dict[str, bool] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if data is True:
            return {"enabled": True, "all_types": True}
        if not isinstance(data, Mapping):
            return {"enabled": False}

        clean: Dict[str, Any] = cls._string_overrides(data)
        clean["enabled"] = len(data) > 0
        clean["toggles"] = {
            str(k): bool(v)
            for k, v in data.items()
            if k not in SECTION_OVERRIDE_KEYS and isinstance(v, (bool, int))
        }
        return clean

    @computed_field  # type: ignore[misc]
    @property
    def types(self) -> List[str]:
        """Enabled organizer types, in declaration order."""
        if self.all_types:
            return list(DEFAULT_ORGANIZER_TYPES)
        return [name for name, on in self.toggles.items() if on]


# ---------------------------------------------------------------------------
# Model definition
# ---------------------------------------------------------------------------


class ModelDefinition(BaseModel):
    """One entry under ``api:`` in the draft."""

    model_config = _INPUT_CONFIG

    table: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)
    dto: DtoSection = Field(default_factory=DtoSection)
    organizers: OrganizerSection = Field(default_factory=OrganizerSection)

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return {}

        clean: Dict[str, Any] = {}
        table: Any = data.get("table")
        if isinstance(table, str):
            clean["table"] = table

        fields: Any = data.get("fields")
        if isinstance(fields, Mapping):
            clean["fields"] = {str(name): cfg for name, cfg in fields.items()}

        clean["dto"] = DtoSection.model_validate(data.get("dto"))
        clean["organizers"] = OrganizerSection.model_validate(data.get("organizers"))
        return clean

    def section(self, kind: Union[GeneratorKind, str]) -> _SectionBase:
        """Return the section model for a generator kind."""
        return self.dto if GeneratorKind(kind) is GeneratorKind.DTO else self.organizers


# ---------------------------------------------------------------------------
# Generator settings
# ---------------------------------------------------------------------------


class KindSettings(BaseModel):
    """
    Naming defaults for one generator kind.

    Patterns are formatted with ``root`` (the root namespace) and
    ``model`` (the model name).
    """

    model_config = _SETTINGS_CONFIG

    namespace: Optional[str] = Field(default=None, description="Default namespace pattern.")
    class_name: Optional[str] = Field(default=None, description="Default class name pattern.")
    extends: Optional[str] = Field(default=None, description="Default parent class.")
    template: str = Field(..., min_length=1, description="Template file name in stub_path.")


def _default_dto_settings() -> KindSettings:
    return KindSettings(
        namespace="{root}\\Domain\\{model}s\\Data",
        class_name="{model}Data",
        extends="Flowlight\\BaseData",
        template="dto.stub.j2",
    )


def _default_organizer_settings() -> KindSettings:
    return KindSettings(
        namespace="{root}\\Domain\\{model}s\\Organizers",
        class_name="{model}Organizer",
        extends="Flowlight\\BaseOrganizer",
        template="organizer.stub.j2",
    )


class GeneratorSettings(BaseModel):
    """
    Explicit configuration object for one generation run.

    Replaces any process-wide lookup: the type table, namespace defaults
    and output layout all travel with this instance.
    """

    model_config = _SETTINGS_CONFIG

    root_namespace: str = Field(default="App", min_length=1)
    namespace_separator: str = Field(default="\\", min_length=1)
    app_path: str = Field(default="app", description="Directory mapped to root_namespace.")
    file_extension: str = Field(default="php", min_length=1)
    stub_path: Optional[str] = Field(
        default=None, description="Directory with custom templates overriding the bundled ones."
    )
    dto: KindSettings = Field(default_factory=_default_dto_settings)
    organizers: KindSettings = Field(default_factory=_default_organizer_settings)
    field_types: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Overrides for the type table (aliases / rules / type_hints).",
    )

    @model_validator(mode="before")
    @classmethod
    def _layer_kind_defaults(cls, data: Any) -> Any:
        """A partial ``dto:`` / ``organizers:`` mapping only replaces the keys it names."""
        if not isinstance(data, Mapping):
            return data

        clean: Dict[str, Any] = dict(data)
        for key, default in (
            ("dto", _default_dto_settings),
            ("organizers", _default_organizer_settings),
        ):
            value: Any = clean.get(key)
            if value is None:
                clean.pop(key, None)
            elif isinstance(value, Mapping):
                clean[key] = {**default().model_dump(), **value}
        return clean

    def for_kind(self, kind: Union[GeneratorKind, str]) -> KindSettings:
        return self.dto if GeneratorKind(kind) is GeneratorKind.DTO else self.organizers


# ---------------------------------------------------------------------------
# Generation output
# ---------------------------------------------------------------------------


class GeneratedFile(BaseModel):
    """A rendered class and where it should be written."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1)
    content: str
    model: str = ""
    kind: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        return self.content.count("\n") + (1 if self.content and not self.content.endswith("\n") else 0)


__all__: List[str] = [
    "ConfigurationError",
    "DraftLoadError",
    "GeneratorKind",
    "OrganizerType",
    "DEFAULT_ORGANIZER_TYPES",
    "SECTION_OVERRIDE_KEYS",
    "FieldSpec",
    "DtoSection",
    "OrganizerSection",
    "ModelDefinition",
    "KindSettings",
    "GeneratorSettings",
    "GeneratedFile",
]

logger.debug("flowgen.models loaded — %d public symbols.", len(__all__))
