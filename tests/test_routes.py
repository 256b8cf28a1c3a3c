"""FastAPI route smoke tests using TestClient with mocked SystemState."""

from unittest.mock import MagicMock

import pytest

from torque_limiter.core.config import LimiterSettings
from torque_limiter.core.limiter import EngineSample
from torque_limiter.core.limiter_service import LimiterService

# ── System routes ──


def test_root(app_client):
    response = app_client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "online"
    assert data["service"] == "torque-limiter"


def test_status_mock_mode(app_client):
    response = app_client.get("/status")
    assert response.status_code == 200
    data = response.json()
    assert data["connection"] == "MOCK"
    assert data["limiter"]["enabled"] is True
    assert data["limiter"]["phase"] == "idle"


def test_status_initializing(app_client):
    app_client._mock_state.is_initializing = True
    response = app_client.get("/status")
    assert response.json()["connection"] == "INITIALIZING"


def test_status_without_service(app_client):
    app_client._mock_state.limiter_service = None
    response = app_client.get("/status")
    assert response.status_code == 200
    assert response.json()["limiter"] is None


# ── Limiter routes ──


def test_limiter_status_after_intervention(app_client):
    state = app_client._mock_state
    state.telemetry_source.set_pilot_throttle([100.0, 80.0])
    state.limiter_service.tick(now=0.0)

    response = app_client.get("/limiter/status")
    assert response.status_code == 200
    data = response.json()
    assert data["is_limiting"] is True
    assert data["intervention_count"] == 1
    assert data["last_intervention"]["recommended_throttle_percents"] == pytest.approx([75.0, 80.0])


def test_limiter_service_missing(app_client):
    app_client._mock_state.limiter_service = None
    response = app_client.get("/limiter/status")
    assert response.status_code == 503
    assert "error" in response.json()


def test_get_config(app_client):
    response = app_client.get("/limiter/config")
    assert response.status_code == 200
    data = response.json()
    assert data["max_torque_percent"] == 100.0
    assert data["aggression_factor"] == 2.5


def test_update_config_partial(app_client, tmp_path):
    response = app_client.put("/limiter/config", json={"cooldown_ms": 500})
    assert response.status_code == 200
    data = response.json()
    assert data["config"]["cooldown_ms"] == 500
    assert data["config"]["aggression_factor"] == 2.5
    assert data["persisted"] is True
    assert (tmp_path / "settings.yaml").exists()
    assert app_client._mock_state.limiter_service.settings.cooldown_ms == 500


def test_update_config_invalid(app_client):
    response = app_client.put("/limiter/config", json={"min_throttle_percent": 120})
    assert response.status_code == 400
    data = response.json()
    assert data["details"][0]["field"] == "min_throttle_percent"
    # Unchanged
    assert app_client._mock_state.limiter_service.settings.min_throttle_percent == 40.0


def test_update_config_not_an_object(app_client):
    response = app_client.put("/limiter/config", json=[1, 2])
    assert response.status_code == 400


def test_enable_disable(app_client):
    response = app_client.post("/limiter/disable")
    assert response.json()["status"] == "disabled"
    assert app_client._mock_state.limiter_service.enabled is False

    response = app_client.post("/limiter/enable")
    assert response.json()["status"] == "enabled"
    assert app_client._mock_state.limiter_service.enabled is True


def test_reset_when_disabled(app_client):
    app_client.post("/limiter/disable")
    response = app_client.post("/limiter/reset")
    assert response.status_code == 409


def test_reset(app_client):
    response = app_client.post("/limiter/reset")
    assert response.status_code == 200
    assert response.json()["status"] == "reset"


def test_interventions(app_client):
    state = app_client._mock_state
    state.telemetry_source.set_pilot_throttle([100.0, 100.0])
    state.limiter_service.tick(now=0.0)

    response = app_client.get("/limiter/interventions", params={"limit": 5})
    assert response.status_code == 200
    interventions = response.json()["interventions"]
    assert len(interventions) == 1
    assert interventions[0]["overlimit_engines"] == [0, 1]


# ── Simulation routes ──


def test_simulation_load_vehicle(app_client):
    response = app_client.post("/simulation/engines", json={"engine_count": 4})
    assert response.status_code == 200
    assert response.json()["engine_count"] == 4


def test_simulation_load_too_many(app_client):
    response = app_client.post("/simulation/engines", json={"engine_count": 6})
    assert response.status_code == 400


def test_simulation_throttle(app_client):
    response = app_client.post("/simulation/throttle", json={"throttle": [90.0, 70.0]})
    assert response.status_code == 200
    samples = app_client._mock_state.telemetry_source.read_engines()
    assert [s.throttle_percent for s in samples] == [90.0, 70.0]


def test_simulation_throttle_missing(app_client):
    response = app_client.post("/simulation/throttle", json={})
    assert response.status_code == 400


def test_simulation_without_mock_vehicle(app_client):
    app_client._mock_state.telemetry_source = object()
    response = app_client.post("/simulation/throttle", json={"throttle": [50.0]})
    assert response.status_code == 503


def test_simulation_engines_invalid_json(app_client):
    response = app_client.post(
        "/simulation/engines", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


def test_simulation_engines_array_body(app_client):
    response = app_client.post("/simulation/engines", json=[4])
    assert response.status_code == 400


def test_simulation_throttle_invalid_json(app_client):
    response = app_client.post(
        "/simulation/throttle", content=b"[90,", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


def test_simulation_throttle_array_body(app_client):
    response = app_client.post("/simulation/throttle", json=[90.0, 70.0])
    assert response.status_code == 400


# ── Degenerate telemetry ──


def test_nan_reading_after_intervention_is_served(app_client):
    """A NaN engine next to an overtorqued one keeps status and history readable."""
    source = MagicMock()
    source.read_engines.return_value = [
        EngineSample(torque_percent=110.0, throttle_percent=100.0),
        EngineSample(torque_percent=float("nan"), throttle_percent=90.0),
    ]
    service = LimiterService(source, MagicMock(), LimiterSettings(enabled=True))
    app_client._mock_state.limiter_service = service
    assert service.tick(now=0.0) is not None

    response = app_client.get("/limiter/interventions")
    assert response.status_code == 200
    event = response.json()["interventions"][0]
    assert event["torque_percents"] == [110.0, None]
    assert event["recommended_throttle_percents"] == [75.0, 90.0]

    response = app_client.get("/limiter/status")
    assert response.status_code == 200
    data = response.json()
    assert data["last_intervention"]["torque_percents"] == [110.0, None]
    assert data["engines"][1]["torque_percent"] is None
