"""Engine torque limiter backend."""
