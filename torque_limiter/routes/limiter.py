import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from torque_limiter.core.config import LimiterSettings, save_limiter_settings
from torque_limiter.dependencies import get_state

logger = logging.getLogger(__name__)
router = APIRouter(tags=["limiter"])


def _no_service():
    return JSONResponse(status_code=503, content={"error": "Torque limiter service not initialized"})


def _no_simulation():
    return JSONResponse(status_code=503, content={"error": "No simulated vehicle attached"})


async def _json_object(request: Request):
    """Parse the body as a JSON object; returns (data, error_response)."""
    try:
        data = await request.json()
    except ValueError:
        return None, JSONResponse(status_code=400, content={"error": "Request body must be JSON"})
    if not isinstance(data, dict):
        return None, JSONResponse(status_code=400, content={"error": "Request body must be an object"})
    return data, None


# ── Limiter ──────────────────────────────────────────────────────────


@router.get("/limiter/status")
def limiter_status():
    system = get_state()
    if not system.limiter_service:
        return _no_service()
    return system.limiter_service.get_status()


@router.get("/limiter/config")
def get_limiter_config():
    system = get_state()
    if not system.limiter_service:
        return _no_service()
    return system.limiter_service.settings.model_dump()


@router.put("/limiter/config")
async def update_limiter_config(request: Request):
    """Partially update limiter settings; unspecified fields keep their value."""
    system = get_state()
    if not system.limiter_service:
        return _no_service()
    data, error = await _json_object(request)
    if error is not None:
        return error

    merged = {**system.limiter_service.settings.model_dump(), **data}
    try:
        settings = LimiterSettings(**merged)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid limiter settings", "details": errors})

    system.limiter_service.update_settings(settings)
    try:
        save_limiter_settings(settings)
    except OSError as e:
        logger.error("Failed to persist limiter settings: %s", e)
        return {"status": "updated", "persisted": False, "config": settings.model_dump()}
    return {"status": "updated", "persisted": True, "config": settings.model_dump()}


@router.post("/limiter/enable")
def enable_limiter():
    system = get_state()
    if not system.limiter_service:
        return _no_service()
    system.limiter_service.enable()
    return {"status": "enabled"}


@router.post("/limiter/disable")
def disable_limiter():
    system = get_state()
    if not system.limiter_service:
        return _no_service()
    system.limiter_service.disable()
    return {"status": "disabled"}


@router.post("/limiter/reset")
def reset_intervention_count():
    """Zero the intervention counter of the running limiter."""
    system = get_state()
    if not system.limiter_service:
        return _no_service()
    if not system.limiter_service.reset_intervention_count():
        return JSONResponse(status_code=409, content={"error": "Torque limiter is disabled"})
    return {"status": "reset"}


@router.get("/limiter/interventions")
def list_interventions(limit: int = 20):
    system = get_state()
    if not system.limiter_service:
        return _no_service()
    return {"interventions": system.limiter_service.get_interventions(limit)}


# ── Simulated vehicle ────────────────────────────────────────────────


@router.post("/simulation/engines")
async def load_simulated_vehicle(request: Request):
    """Load (or with engine_count=0, unload) the simulated vehicle."""
    system = get_state()
    vehicle = system.telemetry_source
    if not getattr(vehicle, "is_mock", False):
        return _no_simulation()
    data, error = await _json_object(request)
    if error is not None:
        return error
    try:
        vehicle.load(int(data.get("engine_count", 0)), float(data.get("throttle", 0.0)))
    except (TypeError, ValueError) as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    return {"status": "loaded", "engine_count": vehicle.engine_count}


@router.post("/simulation/throttle")
async def set_simulated_throttle(request: Request):
    system = get_state()
    vehicle = system.telemetry_source
    if not getattr(vehicle, "is_mock", False):
        return _no_simulation()
    data, error = await _json_object(request)
    if error is not None:
        return error
    throttle = data.get("throttle")
    if not isinstance(throttle, list):
        return JSONResponse(status_code=400, content={"error": "throttle required (list of percents)"})
    try:
        vehicle.set_pilot_throttle(throttle)
    except (TypeError, ValueError) as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    return {"status": "ok", "throttle": throttle}
