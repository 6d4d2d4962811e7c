"""
tests/conftest.py
Shared fixtures for the flowgen test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict

import pytest
import yaml

from flowgen.models import GeneratorSettings


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
DRAFT_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "draft_example.yaml"


# ---------------------------------------------------------------------------
# Raw draft fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_draft_dict() -> Dict[str, Any]:
    """Load the reference draft_example.yaml once per session."""
    assert DRAFT_EXAMPLE_PATH.exists(), (
        f"Reference draft not found at {DRAFT_EXAMPLE_PATH}. "
        "Make sure draft_example.yaml is in the project root."
    )
    with open(DRAFT_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def draft_dict(raw_draft_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_draft_dict)


@pytest.fixture()
def draft_yaml_path(draft_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the draft to a temporary YAML file and return its path."""
    path = tmp_path / "draft.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(draft_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


# ---------------------------------------------------------------------------
# Minimal model definitions
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_definition() -> Dict[str, Any]:
    """The canonical User model: one required and one optional string field."""
    return {
        "table": "users",
        "fields": {
            "name": "string",
            "email": {"type": "string", "required": False, "length": 255},
        },
        "dto": True,
        "organizers": True,
    }


@pytest.fixture()
def user_models(user_definition: Dict[str, Any]) -> Dict[str, Any]:
    return {"User": user_definition}


@pytest.fixture()
def settings() -> GeneratorSettings:
    return GeneratorSettings()


@pytest.fixture()
def stub_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """A stub directory holding a minimal custom DTO template."""
    path = tmp_path / "stubs"
    path.mkdir()
    (path / "dto.stub.j2").write_text(
        "// {{ namespace }}\\{{ class }}\n{{ rules }}\n",
        encoding="utf-8",
    )
    return path
