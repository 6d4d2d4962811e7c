# File: flowgen/__init__.py
"""
Flowgen — DTO & Organizer Scaffolding
======================================

Turns a declarative model draft into Data Transfer Object classes (with
validation rules, messages and attribute labels) and CRUD organizer
classes, rendered through Jinja2 stubs.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│  ApiGenerator  │────▶│ DtoGenerator /   │
    │   (cli.py)   │     │ (generator.py) │     │ OrganizerGenerator│
    └──────────────┘     └───────┬───────┘     └────────┬─────────┘
                                 │                      │
                    ┌────────────┼────────────┐         ▼
                    ▼            ▼            ▼   ┌──────────────┐
             ┌──────────┐ ┌───────────┐ ┌─────────┐│ templates.py │
             │validators│ │  config   │ │exporters││ fields.py    │
             │  (.py)   │ │  (.py)    │ │ (.py)   │└──────────────┘
             └──────────┘ └───────────┘ └─────────┘

Usage::

    # As a library
    from flowgen import ApiGenerator, load_draft_file, parse_draft
    models, settings = parse_draft(load_draft_file(Path("draft.yaml")))
    report = ApiGenerator(settings).generate(models)

    # From the command line
    flowgen build -s draft.yaml -v
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from flowgen.models import (
    ConfigurationError,
    DraftLoadError,
    FieldSpec,
    GeneratedFile,
    GeneratorKind,
    GeneratorSettings,
    KindSettings,
    ModelDefinition,
    OrganizerType,
)
from flowgen.type_map import DEFAULT_TYPE_MAP, TypeRuleMap
from flowgen.fields import Field, FieldCollection
from flowgen.config import ModelConfig, build_model_configs
from flowgen.templates import TemplateRenderer
from flowgen.exporters import ExportResult, FileExporter
from flowgen.generator import (
    GENERATORS,
    ApiGenerator,
    DtoGenerator,
    GenerationReport,
    OrganizerGenerator,
    PluggableGenerator,
    load_draft_file,
    parse_draft,
)
from flowgen.validators import ValidationResult, validate_draft

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestration
    "ApiGenerator",
    "GenerationReport",
    "GENERATORS",
    "PluggableGenerator",
    "DtoGenerator",
    "OrganizerGenerator",
    "load_draft_file",
    "parse_draft",
    # Models
    "ConfigurationError",
    "DraftLoadError",
    "FieldSpec",
    "GeneratedFile",
    "GeneratorKind",
    "GeneratorSettings",
    "KindSettings",
    "ModelDefinition",
    "OrganizerType",
    # Fields & config
    "TypeRuleMap",
    "DEFAULT_TYPE_MAP",
    "Field",
    "FieldCollection",
    "ModelConfig",
    "build_model_configs",
    # Rendering & output
    "TemplateRenderer",
    "FileExporter",
    "ExportResult",
    # Validation
    "ValidationResult",
    "validate_draft",
]
