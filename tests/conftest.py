"""
conftest.py
===========
Pytest configuration and shared fixtures.
"""

import json
import pytest
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Setup global test environment."""
    # Suppress matplotlib GUI warnings
    import matplotlib
    matplotlib.use('Agg')

    import random
    import numpy as np
    random.seed(42)
    np.random.seed(42)

    yield


@pytest.fixture
def write_json():
    """Write a dict as a JSON annotation file and return its path."""
    def _write(path: Path, doc) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(doc), encoding="utf-8")
        return path
    return _write
