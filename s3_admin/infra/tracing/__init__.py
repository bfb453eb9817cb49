"""OpenTelemetry tracing helpers."""
