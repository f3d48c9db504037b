from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.repo_builder import AddonRepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> AddonRepoBuilder:
    """Provide a reusable addon workspace builder rooted at the pytest tmp_path."""
    return AddonRepoBuilder(tmp_path)
