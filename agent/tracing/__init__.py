"""Tracing infrastructure for observability."""

from agent.tracing.tracer import Tracer, TraceMetadata, NoOpTracer, RecordingTracer
from agent.tracing.langsmith_tracer import LangSmithTracer
from agent.tracing.tracer_factory import create_tracer, get_tracer_config

__all__ = [
    "Tracer",
    "TraceMetadata",
    "NoOpTracer",
    "RecordingTracer",
    "LangSmithTracer",
    "create_tracer",
    "get_tracer_config",
]
