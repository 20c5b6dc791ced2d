"""
LangSmith-backed tracing implementation.

Constraints:
- Never influences control flow
- Failures are silent and non-fatal
- Only structural metadata is traced: no prompts, model outputs,
  claim facts or credentials
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from langsmith import Client

from agent.tracing.tracer import TraceMetadata, Tracer

DEFAULT_PROJECT = "claim-validation"

# Fields allowed to leave the process
SAFE_FIELDS = {
    "duration_ms",
    "status",
    "node_name",
    "error_type",
    "error_message",
    "operation",
    "backend",
    "node_count",
    "confidence",
    "decision",
}


class LangSmithTracer(Tracer):
    """
    LangSmith implementation of the Tracer interface.

    Spans become LangSmith runs (create_run on start, update_run on end).
    Events become zero-duration runs. Safe to fail silently: validation
    continues unchanged.
    """

    def __init__(
        self,
        api_key: Optional[str],
        project_name: str = DEFAULT_PROJECT,
        client: Optional[Client] = None,
    ):
        """
        Args:
            api_key: LangSmith API key; tracing is disabled without one
            project_name: LangSmith project runs are filed under
            client: Pre-built client (tests inject a fake)
        """
        self._project_name = project_name
        self._client = client
        self._enabled = client is not None

        if self._client is None and api_key:
            try:
                self._client = Client(api_key=api_key)
                self._enabled = True
            except Exception:
                # Degrade to no-op
                self._enabled = False

    def start_span(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> Optional[Any]:
        if not self._enabled:
            return None

        try:
            run_id = uuid4()
            self._client.create_run(
                name=name,
                inputs=self._inputs(trace_metadata, metadata),
                run_type="chain",
                id=run_id,
                project_name=self._project_name,
                start_time=datetime.now(timezone.utc),
            )
            return run_id
        except Exception:
            # Tracing failure is non-fatal
            return None

    def end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        if not self._enabled or span is None:
            return

        try:
            outputs = self._filter_safe_metadata(metadata)
            outputs["status"] = status
            self._client.update_run(
                span,
                end_time=datetime.now(timezone.utc),
                outputs=outputs,
                error=outputs.get("error_type") if status == "failure" else None,
            )
        except Exception:
            pass

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        if not self._enabled:
            return

        try:
            now = datetime.now(timezone.utc)
            self._client.create_run(
                name=name,
                inputs=self._inputs(trace_metadata, metadata),
                run_type="tool",
                project_name=self._project_name,
                start_time=now,
                end_time=now,
                outputs={},
            )
        except Exception:
            pass

    def is_enabled(self) -> bool:
        return self._enabled

    def _inputs(self, trace_metadata: TraceMetadata, metadata: Dict[str, Any]) -> Dict[str, Any]:
        inputs = {"trace_id": trace_metadata.trace_id}
        if trace_metadata.subject_id:
            inputs["subject_id"] = trace_metadata.subject_id
        inputs.update(self._filter_safe_metadata(metadata))
        return inputs

    @staticmethod
    def _filter_safe_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Keep ONLY fields in SAFE_FIELDS.

        Strings are truncated to 256 characters; non-scalar values are
        stringified and truncated.
        """
        filtered = {}
        for key, value in metadata.items():
            if key not in SAFE_FIELDS:
                continue
            if isinstance(value, str):
                filtered[key] = value if len(value) <= 256 else value[:256] + "..."
            elif isinstance(value, (int, float, bool)):
                filtered[key] = value
            else:
                filtered[key] = str(value)[:256]
        return filtered
