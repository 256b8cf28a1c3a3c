import logging

from fastapi import APIRouter

from torque_limiter.dependencies import get_state

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/")
def read_root():
    return {"status": "online", "service": "torque-limiter"}


@router.get("/status")
def get_status():
    system = get_state()
    connection = "DISCONNECTED"
    if system.is_initializing:
        connection = "INITIALIZING"
    elif system.init_error:
        connection = "ERROR"
    elif system.telemetry_source is not None:
        connection = "MOCK" if getattr(system.telemetry_source, "is_mock", False) else "CONNECTED"

    limiter = None
    if system.limiter_service:
        status = system.limiter_service.get_status()
        limiter = {
            "enabled": status["enabled"],
            "phase": status["phase"],
            "intervention_count": status["intervention_count"],
            "engine_count": status["engine_count"],
        }

    return {
        "connection": connection,
        "limiter": limiter,
        "error": system.init_error,
    }
