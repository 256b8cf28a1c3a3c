"""Telemetry source / command sink boundary and a simulated vehicle.

The limiter only ever sees ``TelemetrySource.read_engines()`` and
``CommandSink.apply_throttles()``. A simulator bridge implements both;
``SimulatedEngines`` stands in when none is attached.
"""

import logging
import threading
from typing import List, Optional, Protocol, Sequence

import numpy as np

from torque_limiter.core.limiter.types import MAX_ENGINES, EngineSample

logger = logging.getLogger(__name__)


class TelemetrySource(Protocol):
    def read_engines(self) -> List[EngineSample]:
        """Current engine samples in engine order (0-4 entries)."""
        ...


class CommandSink(Protocol):
    def apply_throttles(self, throttle_percents: Sequence[float]) -> None:
        """Write one throttle per engine as a single command."""
        ...


class SimulatedEngines:
    """Mock multi-engine vehicle with torque proportional to throttle.

    Torque follows ``throttle * torque_per_throttle`` plus gaussian noise,
    so pushing the levers past ~91% with the default gain overtorques.
    Implements both TelemetrySource and CommandSink.

    Usage::

        sim = SimulatedEngines(engine_count=2)
        sim.set_pilot_throttle([100.0, 85.0])
        samples = sim.read_engines()
        sim.apply_throttles([80.0, 85.0])
    """

    is_mock = True

    def __init__(
        self,
        engine_count: int = 2,
        torque_per_throttle: float = 1.1,
        noise: float = 0.5,
        seed: Optional[int] = None,
    ):
        self.torque_per_throttle = torque_per_throttle
        self.noise = noise
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()
        self._throttles = np.zeros(0)
        self.commands_applied = 0
        self.load(engine_count)

    @property
    def engine_count(self) -> int:
        return len(self._throttles)

    def load(self, engine_count: int, throttle: float = 0.0) -> None:
        """Load a vehicle with ``engine_count`` engines (0 unloads)."""
        if not 0 <= engine_count <= MAX_ENGINES:
            raise ValueError(f"engine_count must be between 0 and {MAX_ENGINES}, got {engine_count}")
        with self._lock:
            self._throttles = np.full(engine_count, float(throttle))
        logger.info("Simulated vehicle loaded with %d engine(s)", engine_count)

    def unload(self) -> None:
        self.load(0)

    def set_pilot_throttle(self, throttle_percents: Sequence[float]) -> None:
        """Move the throttle levers as the pilot would."""
        values = np.clip(np.asarray(throttle_percents, dtype=float), 0.0, 100.0)
        with self._lock:
            if len(values) != len(self._throttles):
                raise ValueError(
                    f"Expected {len(self._throttles)} throttle values, got {len(values)}"
                )
            self._throttles = values

    def read_engines(self) -> List[EngineSample]:
        with self._lock:
            throttles = self._throttles.copy()
        torques = throttles * self.torque_per_throttle
        if self.noise > 0 and len(torques):
            torques = torques + self._rng.normal(0.0, self.noise, size=len(torques))
        return [
            EngineSample(torque_percent=float(t), throttle_percent=float(th))
            for t, th in zip(torques, throttles)
        ]

    def apply_throttles(self, throttle_percents: Sequence[float]) -> None:
        values = np.asarray(throttle_percents, dtype=float)
        with self._lock:
            if len(values) != len(self._throttles):
                # Vehicle changed between read and write
                raise RuntimeError(
                    f"Throttle command for {len(values)} engines, vehicle has {len(self._throttles)}"
                )
            self._throttles = np.clip(values, 0.0, 100.0)
            self.commands_applied += 1
