"""Per-tick state machine for the torque limiter.

``process_sample`` is the whole control law: it takes the previous runtime
state, the engines of this tick, the config and the current time, and
returns the next state plus an optional InterventionEvent. It never reads
a clock and never raises for in-domain input.

``TorqueLimiter`` owns one runtime state across ticks and logs the
episode transitions. Enabling the feature constructs one, disabling it
drops it.
"""

import logging
from dataclasses import replace
from typing import Optional, Sequence, Tuple

from .cooldown import cooldown_elapsed
from .correction import recommend_throttles
from .emitter import emit_intervention
from .evaluator import find_overlimit_engines
from .types import EngineSample, InterventionEvent, LimiterConfig, LimiterRuntimeState

logger = logging.getLogger(__name__)


def process_sample(
    state: LimiterRuntimeState,
    samples: Sequence[EngineSample],
    config: LimiterConfig,
    now: float,
) -> Tuple[LimiterRuntimeState, Optional[InterventionEvent]]:
    """Advance the limiter by one tick.

    Args:
        state: Runtime state after the previous tick.
        samples: Engines of this tick, in engine order (0-4 entries).
        config: Controller tuning for this tick.
        now: Monotonic time in seconds.

    Returns:
        (next_state, event). ``event`` is None unless a correction was issued.
    """
    engine_count = len(samples)

    # Engines just appeared (aircraft loaded): drop whatever the last session left
    if state.last_engine_count == 0 and engine_count > 0:
        state = LimiterRuntimeState()

    if engine_count == 0:
        return replace(state, last_engine_count=0), None

    event = None
    overlimit = find_overlimit_engines(samples, config.max_torque_percent)

    if overlimit:
        if cooldown_elapsed(state.last_intervention_timestamp, config.cooldown_ms, now):
            count = state.intervention_count + 1
            recommended = recommend_throttles(samples, overlimit, config)
            event = emit_intervention(count, overlimit, samples, recommended, timestamp=now)
            state = replace(
                state,
                is_limiting=True,
                intervention_count=count,
                last_intervention_timestamp=now,
            )
    else:
        state = replace(state, is_limiting=False, intervention_count=0)

    return replace(state, last_engine_count=engine_count), event


class TorqueLimiter:
    """Single owner of the limiter runtime state.

    Usage::

        limiter = TorqueLimiter()
        event = limiter.process(samples, config, now=time.monotonic())
        if event:
            sink.apply_throttles(event.recommended_throttle_percents)
    """

    def __init__(self, state: Optional[LimiterRuntimeState] = None):
        self._state = state or LimiterRuntimeState()
        logger.info("Torque limiter initialized")

    @property
    def state(self) -> LimiterRuntimeState:
        return self._state

    @property
    def is_limiting(self) -> bool:
        return self._state.is_limiting

    @property
    def intervention_count(self) -> int:
        return self._state.intervention_count

    def process(
        self,
        samples: Sequence[EngineSample],
        config: LimiterConfig,
        now: float,
    ) -> Optional[InterventionEvent]:
        """Run one tick and log any episode transition."""
        previous = self._state
        self._state, event = process_sample(previous, samples, config, now)

        appeared = previous.last_engine_count == 0 and len(samples) > 0
        if appeared:
            logger.info("Engines detected: %d engine(s) now available", len(samples))

        if event is not None:
            if appeared or not previous.is_limiting:
                logger.warning(
                    "OVERTORQUE DETECTED! Engines: %s",
                    ", ".join(f"#{i + 1}" for i in sorted(event.overlimit_engine_indices)),
                )
            self._log_intervention(event)
        elif previous.is_limiting and not self._state.is_limiting and not appeared and samples:
            logger.info(
                "All engines returned to safe levels after %d interventions",
                previous.intervention_count,
            )

        return event

    def reset_intervention_count(self) -> None:
        """Zero the counter without leaving the current episode."""
        self._state = replace(self._state, intervention_count=0)
        logger.info("Intervention count reset")

    def close(self) -> None:
        logger.info("Torque limiter disposed")

    def _log_intervention(self, event: InterventionEvent) -> None:
        logger.info("Intervention #%d:", event.intervention_count)
        for i in sorted(event.overlimit_engine_indices):
            logger.info(
                "  Engine %d: %.1f%% torque, throttle %.1f%% -> %.1f%%",
                i + 1,
                event.torque_percents[i],
                event.current_throttle_percents[i],
                event.recommended_throttle_percents[i],
            )
