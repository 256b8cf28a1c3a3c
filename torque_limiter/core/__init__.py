"""Controller core: limiter, telemetry boundary, service and config."""
