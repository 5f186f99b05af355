"""HTTP endpoints for soil telemetry summaries."""
