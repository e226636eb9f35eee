"""Pytest configuration for FLIP fluid tests."""
import os
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pytest


def pytest_configure(config):
    """Configure pytest environment for FLIP tests."""
    # Add workspace root to Python path for flip package imports
    workspace_root = Path(__file__).parent.parent.parent
    if str(workspace_root) not in sys.path:
        sys.path.insert(0, str(workspace_root))

    # Headless plotting for snapshot tests
    os.environ['MPLBACKEND'] = 'Agg'


def pytest_ignore_collect(collection_path: Path, config: Any) -> bool:
    """Ignore paths that cannot be stat'ed (broken WSL symlinks on Windows)."""
    try:
        _ = collection_path.is_dir()
    except OSError:
        return True
    return False


@pytest.fixture
def small_sim():
    """Seeded coarse tank with the wave paddle switched off."""
    from flip.scenarios import create_small_tank
    return create_small_tank(seed=1234, wave_enabled=False)


@pytest.fixture
def wave_sim():
    """Seeded coarse tank with the wave paddle running."""
    from flip.scenarios import create_small_tank
    return create_small_tank(seed=1234)


@pytest.fixture
def rng():
    return np.random.default_rng(42)
