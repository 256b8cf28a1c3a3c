import logging
import threading

from torque_limiter.core.config import get_config_path, get_limiter_settings, get_simulation_settings
from torque_limiter.core.limiter_service import LimiterService
from torque_limiter.core.telemetry import SimulatedEngines

logger = logging.getLogger(__name__)


class SystemState:
    def __init__(self):
        self.telemetry_source = None
        self.command_sink = None
        self.limiter_service = None
        self.lock = threading.Lock()

        self.is_initializing = False
        self.init_error = None

    def initialize(self):
        self.is_initializing = True
        self.init_error = None
        try:
            self._inner_initialize()
        except Exception as e:
            logger.exception("Initialization failed: %s", e)
            self.init_error = str(e)
        finally:
            self.is_initializing = False

    def _inner_initialize(self):
        logger.info("Initializing torque limiter backend (config: %s)", get_config_path())
        settings = get_limiter_settings()
        sim = get_simulation_settings()

        # No simulator bridge yet: the mock vehicle is both source and sink
        vehicle = SimulatedEngines(
            engine_count=sim.engine_count,
            torque_per_throttle=sim.torque_per_throttle,
            noise=sim.noise,
            seed=sim.seed,
        )
        self.telemetry_source = vehicle
        self.command_sink = vehicle

        self.limiter_service = LimiterService(vehicle, vehicle, settings)
        self.limiter_service.start()

    def shutdown(self):
        with self.lock:
            if self.limiter_service:
                self.limiter_service.stop()
                self.limiter_service.disable()


state = SystemState()
