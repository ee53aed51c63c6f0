from pathlib import Path
from typing import List

import pytest


@pytest.fixture
def events() -> List[tuple]:
    return []


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    d = tmp_path / "cache"
    d.mkdir()
    return d
