"""Torque limiter types: engine samples, config, runtime state and events."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

# Telemetry contract: a vehicle exposes at most four engines
MAX_ENGINES = 4

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_MAX_TORQUE_PERCENT: float = 100.0
DEFAULT_WARNING_THRESHOLD: float = 0.90
DEFAULT_AGGRESSION_FACTOR: float = 2.5
DEFAULT_MIN_THROTTLE_PERCENT: float = 40.0
DEFAULT_COOLDOWN_MS: int = 2000

MAX_THROTTLE_PERCENT: float = 100.0


def finite_or_none(value: float) -> Optional[float]:
    # NaN/inf readings are not JSON-serializable
    return value if math.isfinite(value) else None


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LimiterPhase(str, Enum):
    """Intervention episode state.

    IDLE → LIMITING on the first permitted intervention,
    LIMITING → IDLE on the first tick with every engine within limits.
    """
    IDLE = "idle"
    LIMITING = "limiting"


class TorqueBand(str, Enum):
    """Display band of an engine's torque. Never drives a correction."""
    NORMAL = "normal"
    WARNING = "warning"
    OVERLIMIT = "overlimit"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineSample:
    """One engine's reading for a single tick. Position in the tick's list is its identity."""
    torque_percent: float
    throttle_percent: float

    def to_dict(self) -> Dict:
        return {
            "torque_percent": finite_or_none(self.torque_percent),
            "throttle_percent": finite_or_none(self.throttle_percent),
        }


@dataclass(frozen=True)
class LimiterConfig:
    """Controller tuning, read-only for the duration of a tick.

    Validated upstream (see ``core.config.LimiterSettings``); not re-checked here.
    """
    max_torque_percent: float = DEFAULT_MAX_TORQUE_PERCENT
    # Fraction of max torque where gauges turn amber (presentation only)
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
    # Throttle points removed per point of torque excess
    aggression_factor: float = DEFAULT_AGGRESSION_FACTOR
    # Safety floor for any commanded throttle
    min_throttle_percent: float = DEFAULT_MIN_THROTTLE_PERCENT
    # Minimum interval between two interventions
    cooldown_ms: int = DEFAULT_COOLDOWN_MS


@dataclass(frozen=True)
class LimiterRuntimeState:
    """State carried from one tick to the next."""
    is_limiting: bool = False
    intervention_count: int = 0
    # Monotonic seconds of the last intervention, None if never
    last_intervention_timestamp: Optional[float] = None
    last_engine_count: int = 0

    @property
    def phase(self) -> LimiterPhase:
        return LimiterPhase.LIMITING if self.is_limiting else LimiterPhase.IDLE


@dataclass(frozen=True)
class InterventionEvent:
    """One correction cycle, covering every engine of the tick."""
    intervention_count: int
    overlimit_engine_indices: FrozenSet[int] = field(default_factory=frozenset)
    torque_percents: Tuple[float, ...] = ()
    current_throttle_percents: Tuple[float, ...] = ()
    recommended_throttle_percents: Tuple[float, ...] = ()
    timestamp: Optional[float] = None

    @property
    def engine_count(self) -> int:
        return len(self.recommended_throttle_percents)

    def to_dict(self) -> Dict:
        """Convert to dictionary for API responses"""
        return {
            "intervention_count": self.intervention_count,
            "overlimit_engines": sorted(self.overlimit_engine_indices),
            "torque_percents": [finite_or_none(v) for v in self.torque_percents],
            "current_throttle_percents": [finite_or_none(v) for v in self.current_throttle_percents],
            "recommended_throttle_percents": [finite_or_none(v) for v in self.recommended_throttle_percents],
            "timestamp": self.timestamp,
        }
