"""Packaging of an intervention decision into an immutable event."""

from typing import AbstractSet, Optional, Sequence

from .types import EngineSample, InterventionEvent


def emit_intervention(
    intervention_count: int,
    overlimit: AbstractSet[int],
    samples: Sequence[EngineSample],
    recommended: Sequence[float],
    timestamp: Optional[float] = None,
) -> InterventionEvent:
    """Snapshot the tick's before/after vectors into an InterventionEvent."""
    if len(recommended) != len(samples):
        raise ValueError(
            f"Recommended vector has {len(recommended)} entries for {len(samples)} engines"
        )
    return InterventionEvent(
        intervention_count=intervention_count,
        overlimit_engine_indices=frozenset(overlimit),
        torque_percents=tuple(s.torque_percent for s in samples),
        current_throttle_percents=tuple(s.throttle_percent for s in samples),
        recommended_throttle_percents=tuple(recommended),
        timestamp=timestamp,
    )
