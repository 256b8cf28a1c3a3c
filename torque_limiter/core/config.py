import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from torque_limiter.core.limiter.types import (
    DEFAULT_AGGRESSION_FACTOR,
    DEFAULT_COOLDOWN_MS,
    DEFAULT_MAX_TORQUE_PERCENT,
    DEFAULT_MIN_THROTTLE_PERCENT,
    DEFAULT_WARNING_THRESHOLD,
    MAX_ENGINES,
    LimiterConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"


def get_config_path() -> Path:
    return Path(os.getenv("TORQUE_LIMITER_CONFIG", str(DEFAULT_CONFIG_PATH)))


class LimiterSettings(BaseModel):
    """User-facing limiter settings. Out-of-range values never reach the controller."""
    enabled: bool = False
    max_torque_percent: float = Field(DEFAULT_MAX_TORQUE_PERCENT, gt=0)
    warning_threshold: float = Field(DEFAULT_WARNING_THRESHOLD, gt=0, le=1)
    aggression_factor: float = Field(DEFAULT_AGGRESSION_FACTOR, gt=0)
    min_throttle_percent: float = Field(DEFAULT_MIN_THROTTLE_PERCENT, ge=0, le=100)
    cooldown_ms: int = Field(DEFAULT_COOLDOWN_MS, ge=0)
    polling_interval_ms: int = Field(500, ge=50)

    def to_limiter_config(self) -> LimiterConfig:
        return LimiterConfig(
            max_torque_percent=self.max_torque_percent,
            warning_threshold=self.warning_threshold,
            aggression_factor=self.aggression_factor,
            min_throttle_percent=self.min_throttle_percent,
            cooldown_ms=self.cooldown_ms,
        )


class SimulationSettings(BaseModel):
    """Mock vehicle used when no simulator bridge is attached."""
    engine_count: int = Field(2, ge=0, le=MAX_ENGINES)
    # Torque percent produced per throttle percent
    torque_per_throttle: float = Field(1.1, gt=0)
    noise: float = Field(0.5, ge=0)
    seed: int | None = None


def load_config(path: Path | None = None) -> dict:
    path = path or get_config_path()
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def save_config(config_data: dict, path: Path | None = None):
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config_data, f, sort_keys=False)


def get_limiter_settings(path: Path | None = None) -> LimiterSettings:
    config = load_config(path)
    return LimiterSettings(**(config.get("torque_limiter") or {}))


def get_simulation_settings(path: Path | None = None) -> SimulationSettings:
    config = load_config(path)
    return SimulationSettings(**(config.get("simulation") or {}))


def save_limiter_settings(settings: LimiterSettings, path: Path | None = None):
    """Write the limiter section back, keeping the rest of the file."""
    config = load_config(path)
    config["torque_limiter"] = settings.model_dump()
    save_config(config, path)
    logger.info("Limiter settings saved to %s", path or get_config_path())
