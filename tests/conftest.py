"""
Shared pytest fixtures for trilateration simulator tests.
"""

import os
import sys
import pytest
import numpy as np

# Add project root to path for imports
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from common.types import GeoPoint  # noqa: E402


@pytest.fixture
def rng():
    """Seeded random generator so sampled tests are reproducible."""
    return np.random.default_rng(20240613)


@pytest.fixture
def near_equator_satellites():
    """Three satellites one degree apart near (0, 0)."""
    return (GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0), GeoPoint(1.0, 0.0))


@pytest.fixture
def near_equator_target():
    return GeoPoint(0.3, 0.3)


@pytest.fixture
def european_satellites():
    """A wider, well-conditioned triangle over Europe."""
    return (GeoPoint(48.8566, 2.3522), GeoPoint(52.5200, 13.4050), GeoPoint(41.9028, 12.4964))


@pytest.fixture
def audit_tmp_dir(tmp_path):
    out = tmp_path / "audit"
    out.mkdir()
    return out
