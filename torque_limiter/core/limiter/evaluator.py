"""Overlimit detection and gauge banding.

Pure functions: no state, no I/O. A NaN torque compares false against
every limit, so a garbled reading is never treated as overlimit.
"""

from typing import FrozenSet, Sequence

from .types import EngineSample, TorqueBand


def find_overlimit_engines(
    samples: Sequence[EngineSample],
    max_torque_percent: float,
) -> FrozenSet[int]:
    """Return the indices of engines whose torque strictly exceeds the limit."""
    return frozenset(
        i for i, sample in enumerate(samples)
        if sample.torque_percent > max_torque_percent
    )


def classify_torque(
    torque_percent: float,
    max_torque_percent: float,
    warning_threshold: float,
) -> TorqueBand:
    """Band a torque reading for display.

    The warning band starts at ``max_torque_percent * warning_threshold``.
    Nothing happens to the throttle until the hard limit is exceeded.
    """
    if torque_percent > max_torque_percent:
        return TorqueBand.OVERLIMIT
    if torque_percent >= max_torque_percent * warning_threshold:
        return TorqueBand.WARNING
    return TorqueBand.NORMAL
