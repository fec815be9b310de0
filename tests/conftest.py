"""Shared pytest configuration and fixtures for the av_control test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.infrastructure.mocks import ManualScheduler, RecordingDevice  # noqa: E402


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "integration: end-to-end scenarios across several components"
    )
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Simulated clock driving every timer in a test."""
    return ManualScheduler()


@pytest.fixture
def router() -> RecordingDevice:
    """Two-output router with both outputs on input 1."""
    return RecordingDevice("router", {"select.1": 1, "select.2": 1})


@pytest.fixture
def room() -> RecordingDevice:
    """Room controls: powered, warmed up, no alarm."""
    return RecordingDevice(
        "room",
        {"ledSystemPower": True, "ledSystemWarming": False, "ledFireAlarm": False},
    )


@pytest.fixture
def camera() -> RecordingDevice:
    return RecordingDevice("devCam01", {"ptz.preset": "0 0 0", "is.moving": False})
