# File: flowgen/generator.py
"""
Flowgen - Generation Pipeline
==============================

Connects every phase together:

    Draft → ModelConfig → Generator drivers (DTO / Organizer) → Exporter

Workflow::

    1. Load the draft from YAML/JSON (or accept an in-memory mapping).
    2. Split it into the ``api`` models and the generator settings.
    3. Wrap each model in a ``ModelConfig``.
    4. Render every eligible kind for that model with its driver.
    5. Hand the rendered files to ``FileExporter`` (unless dry-run).
    6. Return a ``GenerationReport``.

Error handling strategy:
    - A model is all-or-nothing: if any of its kinds fails, none of its
      files are written.
    - One model's ``ConfigurationError`` never stops sibling models.
    - Errors are collected in the report, not swallowed.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

import yaml
from jinja2 import TemplateError

from flowgen.config import ModelConfig, build_model_configs
from flowgen.exporters import ExportResult, FileExporter
from flowgen.models import (
    ConfigurationError,
    DraftLoadError,
    GeneratedFile,
    GeneratorKind,
    GeneratorSettings,
)
from flowgen.templates import (
    TemplateRenderer,
    format_attributes_block,
    format_messages_block,
    format_rules_block,
)
from flowgen.utils import Timer, class_basename

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen.generator")

_MODEL_KEYS: Tuple[str, ...] = ("api", "models")
_CONFIG_KEYS: Tuple[str, ...] = ("config", "flowgen")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Everything ``ApiGenerator.generate()`` did, for the CLI to print."""

    dry_run: bool = False
    files: List[GeneratedFile] = field(default_factory=list)
    written: List[str] = field(default_factory=list)
    skipped_models: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    total_elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.generation_errors and not self.export_errors

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append("=" * 60)
        lines.append("  Flowgen — Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Files rendered:   {len(self.files)}")
        if self.dry_run:
            lines.append("  Files written:    0 (dry run)")
        else:
            lines.append(f"  Files written:    {len(self.written)}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")

        if self.step_metrics:
            lines.append("-" * 60)
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<24s} {step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        path_list: List[str] = [f.path for f in self.files] if self.dry_run else self.written
        if path_list:
            lines.append("-" * 60)
            lines.append("  Would create:" if self.dry_run else "  Created:")
            for path in path_list:
                lines.append(f"    + {path}")

        if self.generation_errors:
            lines.append("-" * 60)
            lines.append(f"  Generation Errors ({len(self.generation_errors)}):")
            for err in self.generation_errors:
                lines.append(f"    ✗ {err}")

        if self.export_errors:
            lines.append("-" * 60)
            lines.append(f"  Export Errors ({len(self.export_errors)}):")
            for err in self.export_errors:
                lines.append(f"    ✗ {err}")

        if self.skipped_models:
            lines.append("-" * 60)
            lines.append(f"  Skipped Models ({len(self.skipped_models)}):")
            for name in self.skipped_models:
                lines.append(f"    ⊘ {name}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Draft loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DraftLoadError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise DraftLoadError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise DraftLoadError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DraftLoadError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_draft_file(path: Path) -> Dict[str, Any]:
    """
    Load a draft file (YAML or JSON), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        DraftLoadError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Draft file not found: {path}")
    if not path.is_file():
        raise DraftLoadError(f"Draft path is not a file: {path}")

    if path.suffix.lower() == ".json":
        return _load_json_file(path)
    # YAML is a superset of JSON, so anything else goes through PyYAML.
    return _load_yaml_file(path)


def parse_draft(
    raw: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Tuple[Dict[str, Any], GeneratorSettings]:
    """
    Split a raw draft into its model definitions and generator settings.

    Models live under ``api`` (or ``models``); settings under ``config``.
    *overrides* (e.g. from CLI flags) are applied on top of the file's
    settings before validation.

    Raises:
        DraftLoadError: If the models section is not a mapping or the
            settings are invalid.
    """
    models: Any = {}
    for key in _MODEL_KEYS:
        if key in raw:
            models = raw[key] or {}
            break
    if not isinstance(models, Mapping):
        raise DraftLoadError(
            f"Expected a mapping of model definitions under 'api', got {type(models).__name__}."
        )

    config_data: Dict[str, Any] = {}
    for key in _CONFIG_KEYS:
        if isinstance(raw.get(key), Mapping):
            config_data = dict(raw[key])
            break
    for key, value in (overrides or {}).items():
        current: Any = config_data.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            config_data[key] = {**current, **value}
        else:
            config_data[key] = value

    try:
        settings: GeneratorSettings = GeneratorSettings.model_validate(config_data)
    except ValueError as exc:
        raise DraftLoadError(f"Invalid generator settings: {exc}") from exc

    return {str(name): definition for name, definition in models.items()}, settings


# ---------------------------------------------------------------------------
# Generator drivers
# ---------------------------------------------------------------------------


class PluggableGenerator(ABC):
    """
    Base driver: turns one ``ModelConfig`` plus a template into a file.

    Subclasses only supply ``kind`` and ``build_context``; eligibility,
    path resolution and rendering are shared.
    """

    kind: GeneratorKind

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self._settings: GeneratorSettings = settings or GeneratorSettings()
        self._renderer: TemplateRenderer = renderer or TemplateRenderer(
            Path(self._settings.stub_path) if self._settings.stub_path else None
        )

    @property
    def template_name(self) -> str:
        return self._settings.for_kind(self.kind).template

    def load_template(self) -> str:
        return self._renderer.load(self.template_name)

    @abstractmethod
    def build_context(self, config: ModelConfig) -> Dict[str, Any]:
        """Template context for one model."""

    def base_context(self, config: ModelConfig) -> Dict[str, Any]:
        parent: str = config.get_extended_class_name(self.kind)
        return {
            "model": config.get_model_name(),
            "namespace": config.get_namespace(self.kind),
            "class": config.get_class_name(self.kind),
            "parentClass": parent or "",
            "parentBasename": class_basename(parent, self._settings.namespace_separator),
            "fields": [f.to_renderer_dict() for f in config.get_fields()],
        }

    def get_path(self, namespace: str, class_name: str) -> str:
        """
        Destination for a class: namespace segments become directories.

        A leading segment equal to the root namespace maps onto
        ``app_path`` (``App\\Domain\\Users\\Data`` → ``app/Domain/Users/Data``).
        """
        parts: List[str] = [p for p in namespace.split(self._settings.namespace_separator) if p]
        if parts and parts[0] == self._settings.root_namespace:
            parts = parts[1:]
        filename: str = f"{class_name}.{self._settings.file_extension}"
        return PurePosixPath(self._settings.app_path, *parts, filename).as_posix()

    def generate(self, config: ModelConfig, template: str) -> GeneratedFile:
        """
        Render one model.

        Raises:
            ConfigurationError: If a required name or the table is missing.
            jinja2.TemplateError: If the template is broken.
        """
        context: Dict[str, Any] = self.build_context(config)
        content: str = self._renderer.render_string(template, context)
        path: str = self.get_path(context["namespace"], context["class"])
        logger.debug("Rendered %s for '%s' → %s.", self.kind.value, config.get_model_name(), path)
        return GeneratedFile(
            path=path,
            content=content,
            model=config.get_model_name(),
            kind=self.kind.value,
        )

    def output(self, configs: List[ModelConfig], template: Optional[str] = None) -> List[GeneratedFile]:
        """Render every eligible model; configuration errors propagate."""
        source: str = template if template is not None else self.load_template()
        return [self.generate(c, source) for c in configs if c.should_generate(self.kind)]


class DtoGenerator(PluggableGenerator):
    """Data Transfer Object classes with rules, messages and labels."""

    kind = GeneratorKind.DTO

    def build_context(self, config: ModelConfig) -> Dict[str, Any]:
        context: Dict[str, Any] = self.base_context(config)
        fields = config.get_fields()
        context["attributes"] = format_attributes_block(fields)
        context["messages"] = format_messages_block(fields, config.get_custom_messages())
        context["rules"] = format_rules_block(fields)
        return context


class OrganizerGenerator(PluggableGenerator):
    """CRUD organizer classes, one method per enabled operation."""

    kind = GeneratorKind.ORGANIZERS

    def build_context(self, config: ModelConfig) -> Dict[str, Any]:
        context: Dict[str, Any] = self.base_context(config)
        model: str = config.get_model_name()
        sep: str = self._settings.namespace_separator
        context["table"] = config.get_table_name()
        context["dataClass"] = (
            f"{config.get_namespace(GeneratorKind.DTO)}{sep}{config.get_class_name(GeneratorKind.DTO)}"
        )
        context["operations"] = [
            {"name": op, "method": f"{op}{model}"} for op in config.get_organizer_types()
        ]
        return context


GENERATORS: Dict[GeneratorKind, Type[PluggableGenerator]] = {
    GeneratorKind.DTO: DtoGenerator,
    GeneratorKind.ORGANIZERS: OrganizerGenerator,
}


# ---------------------------------------------------------------------------
# ApiGenerator: batch orchestrator
# ---------------------------------------------------------------------------


class ApiGenerator:
    """
    Runs every registered driver over every model of a draft.

    Usage::

        raw = load_draft_file(Path("draft.yaml"))
        models, settings = parse_draft(raw)
        report = ApiGenerator(settings).generate(models)
        print(report.summary())
    """

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        *,
        kinds: Optional[List[GeneratorKind]] = None,
        exporter: Optional[FileExporter] = None,
        dry_run: bool = False,
    ) -> None:
        self._settings: GeneratorSettings = settings or GeneratorSettings()
        renderer: TemplateRenderer = TemplateRenderer(
            Path(self._settings.stub_path) if self._settings.stub_path else None
        )
        selected: List[GeneratorKind] = kinds or list(GENERATORS)
        self._generators: List[PluggableGenerator] = [
            GENERATORS[kind](self._settings, renderer) for kind in selected
        ]
        self._exporter: FileExporter = exporter or FileExporter()
        self._dry_run: bool = dry_run

    def render(self, models: Mapping[str, Any], report: GenerationReport) -> List[GeneratedFile]:
        """Render all models, isolating failures per model."""
        templates: Dict[GeneratorKind, str] = {g.kind: g.load_template() for g in self._generators}
        configs: List[ModelConfig] = build_model_configs(models, self._settings)

        rendered: List[GeneratedFile] = []
        for config in configs:
            model_files: List[GeneratedFile] = []
            try:
                for gen in self._generators:
                    if config.should_generate(gen.kind):
                        model_files.append(gen.generate(config, templates[gen.kind]))
            except (ConfigurationError, TemplateError) as exc:
                error_msg: str = f"{config.get_model_name()}: {exc}"
                report.generation_errors.append(error_msg)
                report.skipped_models.append(config.get_model_name())
                logger.error("Skipping model %s", error_msg)
                continue

            if not model_files:
                logger.info("Nothing to generate for '%s'.", config.get_model_name())
            rendered.extend(model_files)
        return rendered

    def generate(self, models: Mapping[str, Any]) -> GenerationReport:
        report: GenerationReport = GenerationReport(dry_run=self._dry_run)

        with Timer("render") as t_render:
            report.files = self.render(models, report)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Render Templates",
            success=not report.generation_errors,
            elapsed_seconds=t_render.elapsed,
            detail=f"{len(report.files)} files from {len(models)} models",
        ))

        elapsed: float = t_render.elapsed
        if not self._dry_run and report.files:
            export_result: ExportResult = self._exporter.export(report.files)
            report.written = export_result.paths
            report.export_errors.extend(export_result.errors)
            report.step_metrics.append(GenerationStepMetric(
                step_name="Write Files",
                success=export_result.success,
                elapsed_seconds=export_result.elapsed_seconds,
                detail=f"{len(export_result.records)} files, {export_result.total_bytes:,} bytes",
            ))
            elapsed += export_result.elapsed_seconds

        report.total_elapsed_seconds = elapsed
        return report


__all__: List[str] = [
    "ApiGenerator",
    "DtoGenerator",
    "OrganizerGenerator",
    "PluggableGenerator",
    "GENERATORS",
    "GenerationReport",
    "GenerationStepMetric",
    "load_draft_file",
    "parse_draft",
]
