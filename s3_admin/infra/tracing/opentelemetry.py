"""OpenTelemetry tracing helpers.

Spans are created through the global tracer provider. Without an SDK
configured by the deployment (e.g. ``opentelemetry-instrument``) the API
hands out non-recording spans, so instrumentation stays cheap.
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance for creating custom spans.

    Args:
        name: Tracer name, typically __name__ of the module.

    Returns:
        Tracer instance for creating spans.

    Example:
        tracer = get_tracer(__name__)

        with tracer.start_as_current_span("delete_bucket") as span:
            span.set_attribute("storage.bucket", name)
    """
    return trace.get_tracer(name)


def add_span_attributes(attributes: dict[str, Any]) -> None:
    """Add attributes to the current span.

    Args:
        attributes: Dictionary of attributes to add.
    """
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)
