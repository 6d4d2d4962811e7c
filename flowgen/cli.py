# File: flowgen/cli.py
"""
Flowgen - Command-Line Interface
=================================

Built with the standard-library ``argparse`` module.

Usage examples::

    # One entity from a field shorthand (DTO + organizers)
    flowgen generate User --fields "name:string email:string:255? age:int"

    # DTO only, written under ./src
    flowgen generate Invoice --fields "total:decimal:10:2" --dto -o ./src

    # Everything in a draft file
    flowgen build -s draft.yaml

    # Preview without touching the disk
    flowgen build -s draft.yaml --dry-run

    # Check a draft
    flowgen validate -s draft.yaml

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, NoReturn, Optional, Sequence

from flowgen.models import DraftLoadError, GeneratorKind

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("flowgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

# name:type[:length[:precision]][?]
_FIELD_SHORTHAND_RE: re.Pattern[str] = re.compile(
    r"^(\w+):([a-z]+)(?::(\d+))?(?::(\d+))?(\?)?$"
)


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root flowgen logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR (quiet), 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("flowgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Field shorthand
# ---------------------------------------------------------------------------


def parse_field_shorthand(fields: str) -> Dict[str, Dict[str, Any]]:
    """
    Translate ``--fields`` into field definitions.

    Tokens are whitespace-separated, each ``name:type[:length[:precision]][?]``:

        >>> parse_field_shorthand("name:string email:string:255?")
        {'name': {'type': 'string', 'required': True}, 'email': {'type': 'string', 'length': 255, 'required': False}}

    A trailing ``?`` marks the field optional.  Tokens that don't match are
    skipped with a warning.
    """
    parsed: Dict[str, Dict[str, Any]] = {}
    for token in fields.split():
        match = _FIELD_SHORTHAND_RE.match(token)
        if match is None:
            logger.warning("Ignoring malformed field definition '%s'.", token)
            continue

        name, field_type, length, precision, optional = match.groups()
        config: Dict[str, Any] = {"type": field_type}
        if length and int(length) > 0:
            config["length"] = int(length)
        if precision and int(precision) > 0:
            config["precision"] = int(precision)
        config["required"] = optional is None
        parsed[name] = config
    return parsed


def build_entity_definition(
    entity: str,
    fields: str = "",
    *,
    dto: bool = False,
    organizers: bool = False,
    table: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Draft entry for a single entity described on the command line.

    With neither *dto* nor *organizers* set, both kinds are generated.
    The table defaults to the snake-case plural of the entity name.
    """
    from flowgen.utils import to_plural, to_snake_case

    if not dto and not organizers:
        dto = organizers = True

    definition: Dict[str, Any] = {
        "table": table or to_plural(to_snake_case(entity)),
        "fields": parse_field_shorthand(fields),
    }
    if dto:
        definition["dto"] = True
    if organizers:
        definition["organizers"] = True
    return definition


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=".",
        metavar="DIR",
        help="Base directory the app path is resolved against (default: current directory).",
    )
    parser.add_argument(
        "--app-path",
        type=str,
        default=None,
        metavar="PATH",
        help="Override the directory mapped to the root namespace (default: 'app').",
    )
    parser.add_argument(
        "--root-namespace",
        type=str,
        default=None,
        metavar="NS",
        help="Override the root namespace (default: 'App').",
    )
    parser.add_argument(
        "--stubs",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory with custom templates overriding the bundled ones.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Render everything but don't write files to disk.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from flowgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="flowgen",
        description=(
            "Flowgen — DTO and CRUD organizer scaffolding.\n\n"
            "Turns a declarative model draft (YAML/JSON) or a field shorthand "
            "into Data Transfer Object and Organizer classes."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  %(prog)s generate User --fields "name:string email:string?"\n'
            "  %(prog)s build -s draft.yaml -o ./src\n"
            "  %(prog)s validate -s draft.yaml\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Flowgen v{__version__}",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Settings file (YAML/JSON) applied on top of the draft's 'config' section.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # --- generate ---
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate classes for one entity from a field shorthand.",
    )
    gen_parser.add_argument("entity", type=str, help="Entity name, e.g. 'User'.")
    gen_parser.add_argument(
        "--fields",
        type=str,
        default="",
        metavar="SPEC",
        help="Space-separated 'name:type[:length[:precision]][?]' definitions.",
    )
    gen_parser.add_argument(
        "--dto",
        action="store_true",
        default=False,
        help="Generate the DTO class.",
    )
    gen_parser.add_argument(
        "--organizers",
        action="store_true",
        default=False,
        help="Generate the organizer class.",
    )
    gen_parser.add_argument(
        "--table",
        type=str,
        default=None,
        metavar="NAME",
        help="Table name (default: snake-case plural of the entity).",
    )
    _add_output_arguments(gen_parser)

    # --- build ---
    build_parser = subparsers.add_parser(
        "build",
        help="Generate classes for every model in a draft file.",
    )
    build_parser.add_argument(
        "-s", "--draft",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the draft file (YAML or JSON).",
    )
    build_parser.add_argument(
        "--no-validate",
        action="store_true",
        default=False,
        help="Skip draft validation before generating.",
    )
    _add_output_arguments(build_parser)

    # --- validate ---
    validate_parser = subparsers.add_parser(
        "validate",
        help="Check a draft file without generating anything.",
    )
    validate_parser.add_argument(
        "-s", "--draft",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the draft file (YAML or JSON).",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge the ``--config`` file and per-command flags into one override dict."""
    from flowgen.generator import load_draft_file

    overrides: Dict[str, Any] = {}

    if args.config is not None:
        data: Dict[str, Any] = load_draft_file(Path(args.config))
        section: Any = data.get("config", data)
        if not isinstance(section, Mapping):
            raise DraftLoadError(
                f"Expected a settings mapping in {args.config}, got {type(section).__name__}."
            )
        overrides.update(section)

    if getattr(args, "app_path", None) is not None:
        overrides["app_path"] = args.app_path

    if getattr(args, "root_namespace", None) is not None:
        overrides["root_namespace"] = args.root_namespace

    if getattr(args, "stubs", None) is not None:
        overrides["stub_path"] = args.stubs

    return overrides


def _load_draft(args: argparse.Namespace) -> Any:
    """Load and split the draft; returns ``(models, settings)``."""
    from flowgen.generator import load_draft_file, parse_draft

    draft_path: Path = Path(args.draft).resolve()
    raw: Dict[str, Any] = load_draft_file(draft_path)
    return parse_draft(raw, _build_config_overrides(args))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _print_validation(result: Any, draft_name: str, model_count: int) -> None:
    print(f"\n{'=' * 50}")
    print("  Draft Validation Report")
    print(f"{'=' * 50}")
    print(f"  File:     {draft_name}")
    print(f"  Models:   {model_count}")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")

    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for err in result.errors:
            print(f"    ✗ {err.message}")

    if result.warnings:
        print(f"\n  Warnings ({len(result.warnings)}):")
        for warn in result.warnings:
            print(f"    ⚠ {warn.message}")

    if result.is_valid and not result.warnings:
        print("\n  ✅ All validations passed!")

    print(f"{'=' * 50}\n")


def _run_validate(args: argparse.Namespace) -> int:
    from flowgen.validators import validate_draft

    try:
        models, settings = _load_draft(args)
    except (FileNotFoundError, DraftLoadError) as exc:
        logger.error("Failed to load draft: %s", exc)
        return EXIT_INPUT_ERROR

    result = validate_draft(models, settings)
    _print_validation(result, Path(args.draft).name, len(models))
    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


def _run_generation(
    models: Dict[str, Any],
    settings: Any,
    args: argparse.Namespace,
    kinds: Optional[List[GeneratorKind]] = None,
) -> int:
    """Run the pipeline and map the report to an exit code."""
    from jinja2 import TemplateError

    from flowgen.exporters import FileExporter
    from flowgen.generator import ApiGenerator, GenerationReport

    output_dir: Path = Path(args.output).resolve()
    logger.info("Output:  %s", output_dir)
    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    generator: ApiGenerator = ApiGenerator(
        settings,
        kinds=kinds,
        exporter=FileExporter(output_dir),
        dry_run=args.dry_run,
    )

    try:
        report: GenerationReport = generator.generate(models)
    except TemplateError as exc:
        logger.error("Generation aborted: %s: %s", type(exc).__name__, exc)
        return EXIT_GENERATION_ERROR

    print(report.summary())

    if report.generation_errors:
        return EXIT_GENERATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    return EXIT_SUCCESS


def _run_build(args: argparse.Namespace) -> int:
    from flowgen.validators import validate_draft

    try:
        models, settings = _load_draft(args)
    except (FileNotFoundError, DraftLoadError) as exc:
        logger.error("Failed to load draft: %s", exc)
        return EXIT_INPUT_ERROR

    if not args.no_validate:
        result = validate_draft(models, settings)
        for warn in result.warnings:
            logger.warning(warn.message)
        if not result.is_valid:
            for err in result.errors:
                logger.error(err.message)
            return EXIT_VALIDATION_ERROR

    return _run_generation(models, settings, args)


def _run_generate(args: argparse.Namespace) -> int:
    from flowgen.generator import parse_draft

    if not args.entity.isidentifier():
        logger.error("Entity name '%s' is not a valid identifier.", args.entity)
        return EXIT_INPUT_ERROR

    definition: Dict[str, Any] = build_entity_definition(
        args.entity,
        args.fields,
        dto=args.dto,
        organizers=args.organizers,
        table=args.table,
    )
    if args.fields and not definition["fields"]:
        logger.warning("No valid field definitions in --fields; generating without fields.")

    try:
        models, settings = parse_draft(
            {"api": {args.entity: definition}},
            _build_config_overrides(args),
        )
    except (FileNotFoundError, DraftLoadError) as exc:
        logger.error("Invalid settings: %s", exc)
        return EXIT_INPUT_ERROR

    return _run_generation(models, settings, args)


_COMMANDS = {
    "generate": _run_generate,
    "build": _run_build,
    "validate": _run_validate,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    logger.debug("Running command '%s'.", args.command)
    exit_code: int = _COMMANDS[args.command](args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Command '%s' completed successfully.", args.command)
    else:
        logger.error("Command '%s' failed with exit code %d.", args.command, exit_code)

    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "main",
    "parse_field_shorthand",
    "build_entity_definition",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("flowgen.cli loaded.")
