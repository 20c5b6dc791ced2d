"""
Tool-agnostic tracing abstraction.

This module defines the Tracer interface every observability backend follows.
Tracing is strictly passive:
- Never influences provider selection or the verdict
- Never mutates validation state
- Failures are silent and non-fatal
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class TraceMetadata:
    """Identity attached to a trace span or event."""

    trace_id: str  # Mandatory: globally unique identifier
    subject_id: Optional[str] = None  # Optional: claim under validation


class Tracer(ABC):
    """
    Abstract tracing interface.

    All implementations MUST guarantee:
    - No control flow influence
    - No state mutation
    - Non-fatal failures (never raise)
    - Best-effort execution
    """

    @abstractmethod
    def start_span(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> Optional[Any]:
        """
        Start a trace span (e.g. one task agent run, one validation).

        Args:
            name: Span name (e.g. "premium_pay_agent", "claim_validation")
            metadata: Structural metadata (node name, status, etc.)
            trace_metadata: Trace identity

        Returns:
            Span handle for end_span, or None if tracing is disabled
        """

    @abstractmethod
    def end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        """
        End a trace span.

        Args:
            span: Span handle from start_span
            status: "success", "failure", or "skipped"
            metadata: Execution results (duration_ms, error_type, etc.)
        """

    @abstractmethod
    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        """
        Record a point-in-time event.

        Events emitted by the dispatch client: provider_skipped,
        provider_failed, provider_selected, family_poisoned,
        providers_exhausted.
        """

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether tracing is active."""


class NoOpTracer(Tracer):
    """Satisfies the Tracer interface but does nothing."""

    def start_span(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> Optional[Any]:
        return None

    def end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        pass

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        pass

    def is_enabled(self) -> bool:
        return False


@dataclass
class RecordingTracer(Tracer):
    """
    In-memory tracer.

    Keeps every event and finished span so tests and local debugging can
    inspect what the dispatch client and orchestrator did.
    """

    events: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)
    spans: List[Dict[str, Any]] = field(default_factory=list)

    def start_span(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> Optional[Any]:
        return {
            "name": name,
            "trace_id": trace_metadata.trace_id,
            "subject_id": trace_metadata.subject_id,
            "start_time": datetime.now(),
            **metadata,
        }

    def end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        if span is None:
            return
        span["status"] = status
        span["end_time"] = datetime.now()
        span.update(metadata)
        self.spans.append(span)

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        self.events.append((name, {"trace_id": trace_metadata.trace_id, **metadata}))

    def is_enabled(self) -> bool:
        return True

    def event_names(self) -> List[str]:
        return [name for name, _ in self.events]
