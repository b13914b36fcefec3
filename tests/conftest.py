from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable editor project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)
