"""Shared test fixtures for the torque limiter backend tests."""

from unittest.mock import MagicMock, patch

import pytest

from torque_limiter.core.config import LimiterSettings
from torque_limiter.core.limiter import EngineSample, LimiterConfig, TorqueLimiter
from torque_limiter.core.limiter_service import LimiterService
from torque_limiter.core.telemetry import SimulatedEngines

# ── Fixtures ──


@pytest.fixture
def config():
    """Stock limiter tuning: 100% limit, x2.5 gain, 40% floor, 2s cooldown."""
    return LimiterConfig(
        max_torque_percent=100.0,
        warning_threshold=0.90,
        aggression_factor=2.5,
        min_throttle_percent=40.0,
        cooldown_ms=2000,
    )


@pytest.fixture
def limiter():
    return TorqueLimiter()


@pytest.fixture
def make_samples():
    """Build an engine list from (torque, throttle) pairs."""
    def _make(*pairs):
        return [EngineSample(torque_percent=t, throttle_percent=th) for t, th in pairs]
    return _make


@pytest.fixture
def vehicle():
    """A noiseless two-engine simulated vehicle."""
    return SimulatedEngines(engine_count=2, torque_per_throttle=1.1, noise=0.0, seed=0)


@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def limiter_service(vehicle, sink):
    """An enabled LimiterService reading from the simulated vehicle, writing to a mock sink."""
    return LimiterService(vehicle, sink, LimiterSettings(enabled=True))


@pytest.fixture
def app_client(tmp_path, monkeypatch):
    """FastAPI TestClient with a mocked SystemState.

    Routes get a controlled state holding a real LimiterService on a
    simulated vehicle, without starting the polling thread.
    """
    from fastapi.testclient import TestClient

    from torque_limiter.main import app

    monkeypatch.setenv("TORQUE_LIMITER_CONFIG", str(tmp_path / "settings.yaml"))

    vehicle = SimulatedEngines(engine_count=2, noise=0.0, seed=0)
    mock_state = MagicMock()
    mock_state.is_initializing = False
    mock_state.init_error = None
    mock_state.telemetry_source = vehicle
    mock_state.command_sink = vehicle
    mock_state.limiter_service = LimiterService(vehicle, vehicle, LimiterSettings(enabled=True))

    with patch("torque_limiter.routes.system.get_state", return_value=mock_state), \
         patch("torque_limiter.routes.limiter.get_state", return_value=mock_state):
        client = TestClient(app, raise_server_exceptions=False)
        client._mock_state = mock_state  # expose for test assertions
        yield client
