"""Tick-driven torque limiter service.

Reads engine telemetry at the configured polling rate, runs the limiter
once per reading and forwards any correction to the command sink as one
per-engine throttle write. Runs on a single daemon thread; the next tick
is only scheduled once the previous one has returned.

Enabling the limiter constructs a fresh TorqueLimiter, disabling it drops
the instance. Nothing is kept across a disable/enable cycle.
"""

import logging
import threading
import time
from collections import deque
from typing import Dict, List, Optional

from torque_limiter.core.config import LimiterSettings
from torque_limiter.core.limiter import (
    MAX_ENGINES,
    EngineSample,
    InterventionEvent,
    LimiterPhase,
    TorqueLimiter,
    classify_torque,
)
from torque_limiter.core.limiter.types import finite_or_none

logger = logging.getLogger(__name__)


class LimiterService:
    """Owns the telemetry loop and the (optional) TorqueLimiter instance."""

    HISTORY_SIZE = 100

    def __init__(self, telemetry_source, command_sink, settings: Optional[LimiterSettings] = None):
        self._source = telemetry_source
        self._sink = command_sink
        self._settings = settings or LimiterSettings()
        self._limiter: Optional[TorqueLimiter] = None
        self._history: deque = deque(maxlen=self.HISTORY_SIZE)
        self._latest_samples: List[EngineSample] = []
        self._tick_count = 0
        self._sink_failures = 0
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.is_running = False

        if self._settings.enabled:
            self.enable()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._limiter is not None

    @property
    def settings(self) -> LimiterSettings:
        return self._settings

    def start(self):
        """Start the polling thread. Idempotent."""
        if self.is_running:
            return
        self._stop_event.clear()
        self.is_running = True
        self._thread = threading.Thread(
            target=self._poll_loop,
            name="torque-limiter",
            daemon=True,
        )
        self._thread.start()
        logger.info("Torque limiter service started (interval: %dms)", self._settings.polling_interval_ms)

    def stop(self):
        """Stop the polling thread."""
        if not self.is_running:
            return
        self.is_running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        logger.info("Torque limiter service stopped")

    def enable(self):
        with self._lock:
            if self._limiter is None:
                self._limiter = TorqueLimiter()
            self._settings = self._settings.model_copy(update={"enabled": True})

    def disable(self):
        with self._lock:
            if self._limiter is not None:
                self._limiter.close()
                self._limiter = None
            self._settings = self._settings.model_copy(update={"enabled": False})

    def update_settings(self, settings: LimiterSettings):
        """Swap in new settings; takes effect from the next tick."""
        with self._lock:
            self._settings = settings
        if settings.enabled:
            self.enable()
        else:
            self.disable()
        logger.info("Limiter settings updated: %s", settings.model_dump())

    def reset_intervention_count(self) -> bool:
        with self._lock:
            if self._limiter is None:
                return False
            self._limiter.reset_intervention_count()
            return True

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> Optional[InterventionEvent]:
        """Read telemetry once and run the limiter on it.

        Returns the InterventionEvent if a correction was issued.
        """
        try:
            samples = list(self._source.read_engines())
        except Exception as e:
            logger.warning("Telemetry read failed, skipping tick: %s", e)
            return None

        if len(samples) > MAX_ENGINES:
            logger.warning("Telemetry reported %d engines, using the first %d", len(samples), MAX_ENGINES)
            samples = samples[:MAX_ENGINES]

        if now is None:
            now = time.monotonic()

        with self._lock:
            self._latest_samples = samples
            self._tick_count += 1
            if self._limiter is None:
                return None
            event = self._limiter.process(samples, self._settings.to_limiter_config(), now)
            if event is None:
                return None
            self._history.append(event)

        # Limiter state has already advanced; a failed write is not rolled back
        try:
            self._sink.apply_throttles(event.recommended_throttle_percents)
        except Exception as e:
            self._sink_failures += 1
            logger.error("Failed to apply throttle command for intervention #%d: %s", event.intervention_count, e)
        return event

    def _poll_loop(self):
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                logger.error("Torque limiter tick failed: %s", e)
            self._stop_event.wait(timeout=self._settings.polling_interval_ms / 1000.0)

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    def get_interventions(self, limit: Optional[int] = None) -> List[Dict]:
        """Recent interventions, oldest first."""
        with self._lock:
            events = list(self._history)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return [e.to_dict() for e in events]

    def get_status(self) -> Dict:
        with self._lock:
            settings = self._settings
            samples = list(self._latest_samples)
            limiter = self._limiter
            phase = limiter.state.phase if limiter else LimiterPhase.IDLE
            count = limiter.intervention_count if limiter else 0
            last_event = self._history[-1] if self._history else None

        engines = []
        for i, sample in enumerate(samples):
            band = classify_torque(
                sample.torque_percent,
                settings.max_torque_percent,
                settings.warning_threshold,
            )
            engines.append({
                "index": i,
                "torque_percent": finite_or_none(sample.torque_percent),
                "throttle_percent": finite_or_none(sample.throttle_percent),
                "band": band.value,
            })

        return {
            "enabled": limiter is not None,
            "running": self.is_running,
            "phase": phase.value,
            "is_limiting": phase == LimiterPhase.LIMITING,
            "intervention_count": count,
            "engine_count": len(samples),
            "engines": engines,
            "tick_count": self._tick_count,
            "sink_failures": self._sink_failures,
            "last_intervention": last_event.to_dict() if last_event else None,
        }
