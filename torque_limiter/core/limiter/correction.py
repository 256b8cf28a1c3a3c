"""Proportional throttle correction for overtorqued engines."""

import math
from typing import AbstractSet, Sequence, Tuple

from .types import MAX_THROTTLE_PERCENT, EngineSample, LimiterConfig


def calculate_throttle_reduction(
    torque_percent: float,
    throttle_percent: float,
    config: LimiterConfig,
) -> float:
    """Recommended throttle for one overlimit engine.

    The reduction is proportional to how far torque is over the limit
    (percentage points) times ``aggression_factor``, then clamped to
    ``[min_throttle_percent, 100]``. A non-finite result falls back to
    ``min_throttle_percent``.

    Example: 108% torque against a 100% limit at 100% throttle with
    aggression 2.5 gives excess 8, reduction 20, new throttle 80%.
    """
    excess = torque_percent - config.max_torque_percent
    reduction = excess * config.aggression_factor
    candidate = throttle_percent - reduction
    if not math.isfinite(candidate):
        # Unreadable throttle on an overtorqued engine: command the floor
        return config.min_throttle_percent
    return max(config.min_throttle_percent, min(MAX_THROTTLE_PERCENT, candidate))


def recommend_throttles(
    samples: Sequence[EngineSample],
    overlimit: AbstractSet[int],
    config: LimiterConfig,
) -> Tuple[float, ...]:
    """Full per-engine throttle vector for one intervention.

    Engines within limits pass through at their current throttle so the
    sink can write every engine in one command.
    """
    return tuple(
        calculate_throttle_reduction(s.torque_percent, s.throttle_percent, config)
        if i in overlimit
        else s.throttle_percent
        for i, s in enumerate(samples)
    )
