"""Pytest fixtures for the map client tests."""

import sys
from pathlib import Path

import pytest

# Service root (services/map-client) on PYTHONPATH so `import mapsync` resolves
CLIENT_ROOT = Path(__file__).resolve().parents[1]
if str(CLIENT_ROOT) not in sys.path:
    sys.path.insert(0, str(CLIENT_ROOT))

from fakes import ControlledApi, RecordingView, StubGeocoder  # noqa: E402
from mapsync.schemas import Coordinate  # noqa: E402


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def api():
    return ControlledApi()


@pytest.fixture
def geocoder():
    return StubGeocoder(
        {
            "Sevilla": Coordinate(lat=37.3891, lon=-5.9845),
            "Bilbao": Coordinate(lat=43.263, lon=-2.935),
        }
    )
