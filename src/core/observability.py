"""Tracing helpers for the generation pipeline.

Span attributes carry identifiers and outcomes only. Article text, prompts,
and generated copy never go into a span: they are customer content.
"""

from __future__ import annotations

import logging

from opentelemetry import trace


logger = logging.getLogger(__name__)


def get_tracer(name: str) -> trace.Tracer:
    """Get an OpenTelemetry tracer for custom instrumentation.

    Without a configured SDK the API returns a no-op tracer, so callers can
    open spans unconditionally.

    Example:
        tracer = get_tracer(__name__)

        with tracer.start_as_current_span("generation.session") as span:
            span.set_attribute("variation.index", 0)
    """
    return trace.get_tracer(name)
