"""Shared fixtures: throwaway template/working SQLite file paths."""

from pathlib import Path

import pytest


@pytest.fixture
def template_path(tmp_path: Path) -> Path:
    return tmp_path / "template.db"


@pytest.fixture
def working_path(tmp_path: Path) -> Path:
    return tmp_path / "working.db"
