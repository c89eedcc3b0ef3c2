from __future__ import annotations

from pathlib import Path

import pytest

from originmap.project import Project
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project() -> Project:
    """Provide an empty in-memory project per test."""
    return Project()


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable on-disk project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)
