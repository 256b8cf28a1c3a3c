"""Torque limiter package: evaluator, cooldown, correction and state tracker."""

from .cooldown import cooldown_elapsed
from .correction import calculate_throttle_reduction, recommend_throttles
from .emitter import emit_intervention
from .evaluator import classify_torque, find_overlimit_engines
from .tracker import TorqueLimiter, process_sample
from .types import (
    MAX_ENGINES,
    EngineSample,
    InterventionEvent,
    LimiterConfig,
    LimiterPhase,
    LimiterRuntimeState,
    TorqueBand,
)

__all__ = [
    "TorqueLimiter",
    "process_sample",
    "find_overlimit_engines",
    "classify_torque",
    "cooldown_elapsed",
    "calculate_throttle_reduction",
    "recommend_throttles",
    "emit_intervention",
    "EngineSample",
    "InterventionEvent",
    "LimiterConfig",
    "LimiterPhase",
    "LimiterRuntimeState",
    "TorqueBand",
    "MAX_ENGINES",
]
