"""Pacing between two consecutive interventions."""

from typing import Optional


def cooldown_elapsed(
    last_intervention_timestamp: Optional[float],
    cooldown_ms: int,
    now: float,
) -> bool:
    """True if a new correction may be issued at ``now``.

    Timestamps are monotonic seconds. ``None`` means no intervention has
    happened yet, which always permits.
    """
    if last_intervention_timestamp is None:
        return True
    elapsed_ms = (now - last_intervention_timestamp) * 1000.0
    return elapsed_ms >= cooldown_ms
