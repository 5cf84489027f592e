"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path
from typing import Callable

import pytest
import yaml


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def write_values(tmp_path: Path) -> Callable[..., Path]:
    """Write a values file from a YAML snippet and return its path."""

    def _write(content: str, name: str = "values.yaml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content))
        return path

    return _write


def values_from_yaml(content: str) -> dict:
    """Parse an indented YAML snippet into a values mapping."""
    return yaml.safe_load(textwrap.dedent(content)) or {}
