"""
Tracer factory.

Implements the TRACER_BACKEND setting:
- "noop" (default): No observability
- "memory": In-process RecordingTracer
- "langsmith": LangSmith observability
"""

import logging
from typing import Optional

from agent.tracing.langsmith_tracer import DEFAULT_PROJECT, LangSmithTracer
from agent.tracing.tracer import NoOpTracer, RecordingTracer, Tracer

logger = logging.getLogger(__name__)

VALID_BACKENDS = {"noop", "memory", "langsmith"}


def normalize_backend(backend: Optional[str]) -> str:
    """Lowercase the backend name; unknown names fall back to noop."""
    backend = (backend or "noop").lower().strip()
    if backend not in VALID_BACKENDS:
        logger.warning(f"Unknown tracer backend '{backend}', using noop")
        return "noop"
    return backend


def create_tracer(
    backend: Optional[str] = "noop",
    langsmith_api_key: Optional[str] = None,
    langsmith_project: str = DEFAULT_PROJECT,
) -> Tracer:
    """
    Create a tracer for the configured backend.

    Always returns a valid Tracer. A LangSmith backend without an API key
    degrades to NoOpTracer.
    """
    backend = normalize_backend(backend)

    if backend == "memory":
        return RecordingTracer()

    if backend == "langsmith":
        if not langsmith_api_key:
            logger.warning("TRACER_BACKEND=langsmith but LANGSMITH_API_KEY is not set; tracing disabled")
            return NoOpTracer()
        tracer = LangSmithTracer(api_key=langsmith_api_key, project_name=langsmith_project)
        if tracer.is_enabled():
            return tracer
        logger.warning("Failed to initialize LangSmith tracer; tracing disabled")

    return NoOpTracer()


def get_tracer_config(
    backend: Optional[str], langsmith_api_key: Optional[str] = None, langsmith_project: str = DEFAULT_PROJECT
) -> dict:
    """Tracer status for startup logs. Never includes the key itself."""
    backend = normalize_backend(backend)
    config = {"tracer_backend": backend, "enabled": backend != "noop"}
    if backend == "langsmith":
        config["langsmith_configured"] = bool(langsmith_api_key)
        config["langsmith_project"] = langsmith_project
    return config
