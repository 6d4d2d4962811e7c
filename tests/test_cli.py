"""
tests/test_cli.py
Tests for the flowgen command-line interface.

``cli_main`` always exits via ``sys.exit``; tests assert on the exit code
and on the files left in ``tmp_path``.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Any, Dict, Iterator, List

import pytest
import yaml

from flowgen.cli import (
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    build_entity_definition,
    cli_main,
    parse_field_shorthand,
)


@pytest.fixture(autouse=True)
def _reset_flowgen_logger() -> Iterator[None]:
    """``cli_main`` installs its own handler; undo it so other tests see a clean logger."""
    yield
    root_logger = logging.getLogger("flowgen")
    root_logger.handlers.clear()
    root_logger.propagate = True
    root_logger.setLevel(logging.NOTSET)


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


def _write_draft(tmp_path: pathlib.Path, data: Dict[str, Any]) -> pathlib.Path:
    path = tmp_path / "draft.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ===========================================================================
# Field shorthand
# ===========================================================================


class TestParseFieldShorthand:
    """``name:type[:length[:precision]][?]`` tokens."""

    def test_required_and_optional(self) -> None:
        assert parse_field_shorthand("name:string email:string?") == {
            "name": {"type": "string", "required": True},
            "email": {"type": "string", "required": False},
        }

    def test_length_and_precision(self) -> None:
        assert parse_field_shorthand("amount:decimal:10:2") == {
            "amount": {"type": "decimal", "length": 10, "precision": 2, "required": True},
        }

    def test_length_on_optional(self) -> None:
        assert parse_field_shorthand("email:string:255?")["email"] == {
            "type": "string",
            "length": 255,
            "required": False,
        }

    def test_malformed_tokens_skipped(self) -> None:
        assert parse_field_shorthand("bad name:String age:int:x ok:int") == {
            "ok": {"type": "int", "required": True},
        }

    def test_extra_whitespace(self) -> None:
        assert list(parse_field_shorthand("  a:int   b:text ")) == ["a", "b"]

    def test_empty(self) -> None:
        assert parse_field_shorthand("") == {}


class TestBuildEntityDefinition:
    """Draft entry built from command-line options."""

    def test_defaults_to_both_kinds(self) -> None:
        definition = build_entity_definition("OrderItem", "qty:int")
        assert definition["table"] == "order_items"
        assert definition["dto"] is True
        assert definition["organizers"] is True
        assert definition["fields"] == {"qty": {"type": "int", "required": True}}

    def test_dto_only(self) -> None:
        definition = build_entity_definition("User", dto=True)
        assert "organizers" not in definition
        assert definition["dto"] is True

    def test_explicit_table(self) -> None:
        assert build_entity_definition("Person", table="staff")["table"] == "staff"


# ===========================================================================
# Commands
# ===========================================================================


class TestGenerateCommand:
    """``flowgen generate``."""

    def test_generates_both_classes(self, tmp_path: pathlib.Path) -> None:
        code = _run(
            ["generate", "User", "--fields", "name:string email:string:255?", "-o", str(tmp_path)]
        )
        assert code == EXIT_SUCCESS
        dto = tmp_path / "app" / "Domain" / "Users" / "Data" / "UserData.php"
        organizer = tmp_path / "app" / "Domain" / "Users" / "Organizers" / "UserOrganizer.php"
        assert "'email' => ['sometimes', 'string', 'max:255']," in dto.read_text(encoding="utf-8")
        assert "protected string $table = 'users';" in organizer.read_text(encoding="utf-8")

    def test_dto_flag_only(self, tmp_path: pathlib.Path) -> None:
        assert _run(["generate", "User", "--dto", "-o", str(tmp_path)]) == EXIT_SUCCESS
        assert (tmp_path / "app" / "Domain" / "Users" / "Data" / "UserData.php").is_file()
        assert not (tmp_path / "app" / "Domain" / "Users" / "Organizers").exists()

    def test_dry_run(self, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["generate", "User", "--dry-run", "-o", str(tmp_path)]) == EXIT_SUCCESS
        assert list(tmp_path.iterdir()) == []
        assert "app/Domain/Users/Data/UserData.php" in capsys.readouterr().out

    def test_app_path_override(self, tmp_path: pathlib.Path) -> None:
        code = _run(["generate", "Tag", "--dto", "-o", str(tmp_path), "--app-path", "src"])
        assert code == EXIT_SUCCESS
        assert (tmp_path / "src" / "Domain" / "Tags" / "Data" / "TagData.php").is_file()

    def test_invalid_entity(self, tmp_path: pathlib.Path) -> None:
        assert _run(["generate", "Bad-Name", "-o", str(tmp_path)]) == EXIT_INPUT_ERROR

    def test_global_config_file(self, tmp_path: pathlib.Path) -> None:
        config = tmp_path / "flowgen.yaml"
        config.write_text(yaml.safe_dump({"root_namespace": "Acme"}), encoding="utf-8")
        out = tmp_path / "out"
        code = _run(["--config", str(config), "generate", "User", "--dto", "-o", str(out)])
        assert code == EXIT_SUCCESS
        content = (out / "app" / "Domain" / "Users" / "Data" / "UserData.php").read_text(
            encoding="utf-8"
        )
        assert "namespace Acme\\Domain\\Users\\Data;" in content

    @pytest.mark.parametrize("section", [None, 3, ["dto"]])
    def test_config_section_not_mapping(self, tmp_path: pathlib.Path, section: Any) -> None:
        config = tmp_path / "flowgen.yaml"
        config.write_text(yaml.safe_dump({"config": section}), encoding="utf-8")
        code = _run(["--config", str(config), "generate", "User", "-o", str(tmp_path / "out")])
        assert code == EXIT_INPUT_ERROR
        assert not (tmp_path / "out").exists()

    def test_partial_kind_settings(self, tmp_path: pathlib.Path) -> None:
        config = tmp_path / "flowgen.yaml"
        config.write_text(yaml.safe_dump({"dto": {"namespace": "{root}\\Data"}}), encoding="utf-8")
        out = tmp_path / "out"
        code = _run(["--config", str(config), "generate", "User", "--dto", "-o", str(out)])
        assert code == EXIT_SUCCESS
        assert (out / "app" / "Data" / "UserData.php").is_file()

    def test_unknown_placeholder(self, tmp_path: pathlib.Path) -> None:
        config = tmp_path / "flowgen.yaml"
        config.write_text(yaml.safe_dump({"dto": {"namespace": "{Model}"}}), encoding="utf-8")
        out = tmp_path / "out"
        code = _run(["--config", str(config), "generate", "User", "--dto", "-o", str(out)])
        assert code == EXIT_GENERATION_ERROR
        assert not out.exists()


class TestBuildCommand:
    """``flowgen build``."""

    def test_builds_draft(self, draft_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "out"
        assert _run(["build", "-s", str(draft_yaml_path), "-o", str(out)]) == EXIT_SUCCESS
        assert (out / "app" / "Support" / "Data" / "TagPayload.php").is_file()
        assert (out / "app" / "Domain" / "Invoices" / "Organizers" / "InvoiceOrganizer.php").is_file()

    def test_missing_draft(self, tmp_path: pathlib.Path) -> None:
        assert _run(["build", "-s", str(tmp_path / "missing.yaml")]) == EXIT_INPUT_ERROR

    def test_validation_failure(self, tmp_path: pathlib.Path) -> None:
        draft = _write_draft(tmp_path, {"api": {"Post": {"organizers": True}}})
        code = _run(["build", "-s", str(draft), "-o", str(tmp_path / "out")])
        assert code == EXIT_VALIDATION_ERROR
        assert not (tmp_path / "out").exists()

    def test_generation_failure_without_validation(self, tmp_path: pathlib.Path) -> None:
        draft = _write_draft(tmp_path, {"api": {"Post": {"organizers": True}}})
        code = _run(["build", "-s", str(draft), "-o", str(tmp_path / "out"), "--no-validate"])
        assert code == EXIT_GENERATION_ERROR

    def test_missing_template(self, tmp_path: pathlib.Path) -> None:
        draft = _write_draft(
            tmp_path,
            {
                "api": {"Tag": {"dto": True, "fields": {"label": "string"}}},
                "config": {"dto": {"template": "missing.j2"}},
            },
        )
        code = _run(["build", "-s", str(draft), "-o", str(tmp_path / "out")])
        assert code == EXIT_GENERATION_ERROR

    def test_invalid_settings(self, tmp_path: pathlib.Path) -> None:
        draft = _write_draft(tmp_path, {"api": {}, "config": {"unknown_key": 1}})
        assert _run(["build", "-s", str(draft)]) == EXIT_INPUT_ERROR

    def test_unknown_placeholder_fails_validation(self, tmp_path: pathlib.Path) -> None:
        draft = _write_draft(
            tmp_path,
            {
                "api": {"Tag": {"dto": True, "fields": {"label": "string"}}},
                "config": {"organizers": {"class_name": "{Model}Organizer"}},
            },
        )
        code = _run(["build", "-s", str(draft), "-o", str(tmp_path / "out")])
        assert code == EXIT_VALIDATION_ERROR


class TestValidateCommand:
    """``flowgen validate``."""

    def test_valid(self, draft_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["validate", "-s", str(draft_yaml_path)]) == EXIT_SUCCESS
        assert "Valid:    Yes" in capsys.readouterr().out

    def test_invalid(self, tmp_path: pathlib.Path) -> None:
        draft = _write_draft(tmp_path, {"api": {"Post": {"organizers": True}}})
        assert _run(["validate", "-s", str(draft)]) == EXIT_VALIDATION_ERROR

    def test_unparseable(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("api: [", encoding="utf-8")
        assert _run(["validate", "-s", str(path)]) == EXIT_INPUT_ERROR


class TestGlobalOptions:
    """Options shared by every command."""

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == 0
        assert "Flowgen v" in capsys.readouterr().out

    def test_command_required(self) -> None:
        assert _run([]) == 2

    def test_quiet_and_verbose(self, draft_yaml_path: pathlib.Path) -> None:
        assert _run(["-q", "validate", "-s", str(draft_yaml_path)]) == EXIT_SUCCESS
        assert _run(["-vv", "validate", "-s", str(draft_yaml_path)]) == EXIT_SUCCESS
