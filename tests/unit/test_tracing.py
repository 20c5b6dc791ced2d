"""
Tests for tracing.

Proves that:
1. The factory always returns a usable tracer
2. Only safe structural metadata reaches LangSmith
3. Tracing failures never propagate
"""

from unittest.mock import MagicMock

import pytest

from agent.tracing import (
    LangSmithTracer,
    NoOpTracer,
    RecordingTracer,
    TraceMetadata,
    create_tracer,
    get_tracer_config,
)

TRACE = TraceMetadata(trace_id="trace-123", subject_id="claim-001")


class TestTracerFactory:
    def test_default_is_noop(self):
        tracer = create_tracer()

        assert isinstance(tracer, NoOpTracer)
        assert not tracer.is_enabled()

    def test_memory_backend(self):
        assert isinstance(create_tracer("MEMORY"), RecordingTracer)

    def test_unknown_backend_is_noop(self):
        assert isinstance(create_tracer("langtrace"), NoOpTracer)

    def test_langsmith_without_key_is_noop(self):
        assert isinstance(create_tracer("langsmith", langsmith_api_key=None), NoOpTracer)

    def test_config_never_contains_key(self):
        config = get_tracer_config("langsmith", langsmith_api_key="lsv2-secret")

        assert config["langsmith_configured"] is True
        assert "lsv2-secret" not in str(config)


class TestRecordingTracer:
    def test_spans_and_events(self):
        tracer = RecordingTracer()

        span = tracer.start_span("premium_pay_agent", {"node_name": "premium_pay"}, TRACE)
        tracer.record_event("provider_selected", {"backend": "groq/llama"}, TRACE)
        tracer.end_span(span, "success", {"duration_ms": 12})

        assert tracer.event_names() == ["provider_selected"]
        assert tracer.events[0][1]["trace_id"] == "trace-123"
        (finished,) = tracer.spans
        assert finished["status"] == "success"
        assert finished["subject_id"] == "claim-001"


class TestLangSmithTracer:
    def test_disabled_without_key_or_client(self):
        tracer = LangSmithTracer(api_key=None)

        assert not tracer.is_enabled()
        assert tracer.start_span("x", {}, TRACE) is None

    def test_span_lifecycle_uses_runs(self):
        client = MagicMock()
        tracer = LangSmithTracer(api_key=None, client=client)

        run_id = tracer.start_span("claim_validation", {"node_name": "decision"}, TRACE)
        tracer.end_span(run_id, "failure", {"error_type": "providers_exhausted"})

        create_kwargs = client.create_run.call_args.kwargs
        assert create_kwargs["run_type"] == "chain"
        assert create_kwargs["id"] == run_id
        assert create_kwargs["inputs"] == {
            "trace_id": "trace-123",
            "subject_id": "claim-001",
            "node_name": "decision",
        }
        update_kwargs = client.update_run.call_args.kwargs
        assert update_kwargs["outputs"]["status"] == "failure"
        assert update_kwargs["error"] == "providers_exhausted"

    def test_unsafe_fields_are_dropped(self):
        client = MagicMock()
        tracer = LangSmithTracer(api_key=None, client=client)

        tracer.record_event(
            "provider_failed",
            {"backend": "groq/llama", "prompt": "Claim details...", "api_key": "gsk-secret"},
            TRACE,
        )

        inputs = client.create_run.call_args.kwargs["inputs"]
        assert "prompt" not in inputs
        assert "api_key" not in inputs
        assert inputs["backend"] == "groq/llama"

    def test_long_values_are_truncated(self):
        filtered = LangSmithTracer._filter_safe_metadata({"error_message": "x" * 500})

        assert len(filtered["error_message"]) == 259

    @pytest.mark.parametrize("method", ["start_span", "record_event"])
    def test_client_failures_are_silent(self, method):
        client = MagicMock()
        client.create_run.side_effect = RuntimeError("LangSmith down")
        tracer = LangSmithTracer(api_key=None, client=client)

        getattr(tracer, method)("claim_validation", {}, TRACE)

    def test_end_span_failure_is_silent(self):
        client = MagicMock()
        client.update_run.side_effect = RuntimeError("LangSmith down")
        tracer = LangSmithTracer(api_key=None, client=client)

        tracer.end_span("run-id", "success", {})
