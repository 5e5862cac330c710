"""HTTP surface for sensor telemetry reports."""
