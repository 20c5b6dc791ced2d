"""
tests/unit/test_dispatch.py

Tests for UnifiedDispatchClient provider routing.

Verifies:
✔ First success along the ladder wins; selection is deterministic
✔ auth_error / credit_exhausted poison the family for the rest of one call only
✔ rate_limited / transport_error only fail the current config
✔ Unreachable local backends and missing credentials are skips, not failures
✔ Timeouts become transport errors
✔ Exhaustion raises AllProvidersExhausted with attempts, failures and skips
✔ Malformed output is never retried
"""

import asyncio
from decimal import Decimal

import pytest

from agent.tracing import RecordingTracer
from inference import (
    AllProvidersExhausted,
    AuthError,
    AvailabilityCache,
    BackendFamily,
    CostModel,
    CreditExhausted,
    DecodeFailure,
    ErrorClass,
    ProviderCatalog,
    ProviderConfig,
    RateLimited,
    StubModelBackend,
    TaskRequest,
    TaskType,
    TransportError,
    UnifiedDispatchClient,
)
from inference.catalog import SONNET
from agent.tasks.schemas import FlightTimeAnswer

OLLAMA = BackendFamily.OLLAMA
GROQ = BackendFamily.GROQ
ANTHROPIC = BackendFamily.ANTHROPIC
OPENAI = BackendFamily.OPENAI

CREDENTIALS = {GROQ: "groq-key", ANTHROPIC: "anthropic-key", OPENAI: None}


# ─────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────


def make_catalog(task_type, entries, credentials=CREDENTIALS, cost=None):
    configs = [
        ProviderConfig(family, model, cost or CostModel.free(), priority)
        for priority, (family, model) in enumerate(entries)
    ]
    return ProviderCatalog.build(credentials, ladders={task_type: configs})


def make_request(task_type=TaskType.COMPLIANCE):
    return TaskRequest(
        system_instruction="You validate claims.",
        user_instruction="Claim CLM-1, $125.00",
        task_type=task_type,
        temperature=0.2,
        max_output_tokens=500,
    )


def local(available=True):
    return StubModelBackend(family=OLLAMA, available=available, requires_probe=True)


class HangingProbeBackend(StubModelBackend):
    """Local backend whose health probe never answers."""

    async def probe(self, timeout_s):
        self.probe_count += 1
        await asyncio.sleep(10)
        return True


class SlowBackend(StubModelBackend):
    async def generate(self, request, config):
        self.calls.append(config.model_id)
        await asyncio.sleep(10)


# ─────────────────────────────────────────────────────
# Selection
# ─────────────────────────────────────────────────────


class TestSelection:
    @pytest.mark.asyncio
    async def test_first_reachable_provider_answers(self):
        ollama = local()
        groq = StubModelBackend(family=GROQ)
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(OLLAMA, "llama3.2"), (GROQ, "llama-70b")]),
            {OLLAMA: ollama, GROQ: groq},
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert response.backend_family == "ollama"
        assert response.model_id == "llama3.2"
        assert groq.calls == []

    @pytest.mark.asyncio
    async def test_repeated_dispatch_selects_same_provider(self):
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(OLLAMA, "llama3.2"), (GROQ, "llama-70b")]),
            {OLLAMA: local(), GROQ: StubModelBackend(family=GROQ)},
        )

        first = await client.dispatch(TaskType.COMPLIANCE, make_request())
        second = await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert (first.backend_family, first.model_id) == (second.backend_family, second.model_id)

    @pytest.mark.asyncio
    async def test_estimated_cost_comes_from_cost_model(self):
        cost = CostModel.per_million("3", "15")
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(ANTHROPIC, SONNET)], cost=cost),
            {ANTHROPIC: StubModelBackend(family=ANTHROPIC)},
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert response.estimated_cost == cost.estimate(response.usage)
        assert response.estimated_cost > Decimal("0")

    @pytest.mark.asyncio
    async def test_force_family_skips_other_families(self):
        ollama = local()
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(OLLAMA, "llama3.2"), (ANTHROPIC, SONNET)]),
            {OLLAMA: ollama, ANTHROPIC: StubModelBackend(family=ANTHROPIC)},
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request(), force_family=ANTHROPIC)

        assert response.backend_family == "anthropic"
        assert ollama.calls == []
        assert ollama.probe_count == 0

    @pytest.mark.asyncio
    async def test_skip_local_never_probes(self):
        ollama = local()
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(OLLAMA, "llama3.2"), (GROQ, "llama-70b")]),
            {OLLAMA: ollama, GROQ: StubModelBackend(family=GROQ)},
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request(), skip_local=True)

        assert response.backend_family == "groq"
        assert ollama.probe_count == 0

    @pytest.mark.asyncio
    async def test_unknown_task_type_uses_orchestrator_ladder(self):
        catalog = make_catalog(TaskType.ORCHESTRATOR, [(GROQ, "llama-70b")])
        client = UnifiedDispatchClient(catalog, {GROQ: StubModelBackend(family=GROQ)})

        response = await client.dispatch(TaskType.PREMIUM_PAY, make_request(TaskType.PREMIUM_PAY))

        assert response.backend_family == "groq"


# ─────────────────────────────────────────────────────
# Skips
# ─────────────────────────────────────────────────────


class TestSkips:
    @pytest.mark.asyncio
    async def test_unreachable_local_backend_is_skipped(self):
        ollama = local(available=False)
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(OLLAMA, "llama3.2"), (GROQ, "llama-70b")]),
            {OLLAMA: ollama, GROQ: StubModelBackend(family=GROQ)},
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert response.backend_family == "groq"
        assert ollama.calls == []

    @pytest.mark.asyncio
    async def test_probe_result_is_cached_between_calls(self, fake_clock):
        ollama = local(available=False)
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(OLLAMA, "llama3.2"), (GROQ, "llama-70b")]),
            {OLLAMA: ollama, GROQ: StubModelBackend(family=GROQ)},
            availability=AvailabilityCache(ttl_s=60.0, clock=fake_clock),
        )

        await client.dispatch(TaskType.COMPLIANCE, make_request())
        await client.dispatch(TaskType.COMPLIANCE, make_request())
        assert ollama.probe_count == 1

        fake_clock.advance(60.0)
        await client.dispatch(TaskType.COMPLIANCE, make_request())
        assert ollama.probe_count == 2

    @pytest.mark.asyncio
    async def test_missing_credential_is_a_skip(self):
        anthropic = StubModelBackend(family=ANTHROPIC)
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(ANTHROPIC, SONNET)], credentials={}),
            {ANTHROPIC: anthropic},
        )

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert anthropic.calls == []
        assert exc_info.value.attempted == []
        assert exc_info.value.skipped == [("anthropic", SONNET, "missing_credential")]

    @pytest.mark.asyncio
    async def test_family_without_adapter_is_not_implemented(self):
        client = UnifiedDispatchClient(
            make_catalog(TaskType.FLIGHT_TIME, [(OPENAI, "gpt-4o-mini"), (GROQ, "llama-70b")],
                         credentials={OPENAI: "openai-key", GROQ: "groq-key"}),
            {GROQ: StubModelBackend(family=GROQ, error=TransportError("down"))},
        )

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await client.dispatch(TaskType.FLIGHT_TIME, make_request(TaskType.FLIGHT_TIME))

        classes = [f.error_class for f in exc_info.value.failures]
        assert classes == [ErrorClass.NOT_IMPLEMENTED, ErrorClass.TRANSPORT_ERROR]
        assert exc_info.value.attempted == [("groq", "llama-70b")]


# ─────────────────────────────────────────────────────
# Poisoning
# ─────────────────────────────────────────────────────


class TestPoisoning:
    @pytest.mark.asyncio
    async def test_auth_error_poisons_remaining_family_configs(self):
        groq = StubModelBackend(family=GROQ, error=AuthError("bad key", status_code=401))
        anthropic = StubModelBackend(family=ANTHROPIC)
        client = UnifiedDispatchClient(
            make_catalog(
                TaskType.COMPLIANCE,
                [(GROQ, "llama-70b"), (GROQ, "llama-8b"), (ANTHROPIC, SONNET)],
            ),
            {GROQ: groq, ANTHROPIC: anthropic},
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert response.backend_family == "anthropic"
        assert groq.calls == ["llama-70b"]

    @pytest.mark.asyncio
    async def test_credit_exhausted_poisons_family(self):
        anthropic = StubModelBackend(
            family=ANTHROPIC, error=CreditExhausted("credit balance is too low", status_code=400)
        )
        client = UnifiedDispatchClient(
            make_catalog(
                TaskType.COMPLIANCE,
                [(ANTHROPIC, SONNET), (ANTHROPIC, "claude-opus-4-20250514")],
            ),
            {ANTHROPIC: anthropic},
        )

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert anthropic.calls == [SONNET]
        assert exc_info.value.poisoned is True
        assert ("anthropic", "claude-opus-4-20250514", "family_poisoned") in exc_info.value.skipped

    @pytest.mark.asyncio
    async def test_poisoning_is_call_scoped(self):
        groq = StubModelBackend(family=GROQ, error=AuthError("bad key", status_code=401))
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(GROQ, "llama-70b"), (ANTHROPIC, SONNET)]),
            {GROQ: groq, ANTHROPIC: StubModelBackend(family=ANTHROPIC)},
        )

        await client.dispatch(TaskType.COMPLIANCE, make_request())
        await client.dispatch(TaskType.COMPLIANCE, make_request())

        # The second, independent call retries the family
        assert groq.calls == ["llama-70b", "llama-70b"]

    @pytest.mark.asyncio
    async def test_rate_limit_does_not_poison(self):
        groq = StubModelBackend(family=GROQ, error=RateLimited("slow down", status_code=429))
        client = UnifiedDispatchClient(
            make_catalog(
                TaskType.COMPLIANCE,
                [(GROQ, "llama-70b"), (GROQ, "llama-8b"), (ANTHROPIC, SONNET)],
            ),
            {GROQ: groq, ANTHROPIC: StubModelBackend(family=ANTHROPIC)},
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert response.backend_family == "anthropic"
        assert groq.calls == ["llama-70b", "llama-8b"]

    @pytest.mark.asyncio
    async def test_poisoning_emits_trace_events(self):
        tracer = RecordingTracer()
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(GROQ, "llama-70b"), (ANTHROPIC, SONNET)]),
            {
                GROQ: StubModelBackend(family=GROQ, error=AuthError("bad key", status_code=401)),
                ANTHROPIC: StubModelBackend(family=ANTHROPIC),
            },
            tracer=tracer,
        )

        await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert tracer.event_names() == ["provider_failed", "family_poisoned", "provider_selected"]


# ─────────────────────────────────────────────────────
# Scenarios
# ─────────────────────────────────────────────────────


class TestScenarios:
    @pytest.mark.asyncio
    async def test_scenario_c_probe_timeout_auth_error_then_premium(self):
        ollama = HangingProbeBackend(family=OLLAMA, requires_probe=True)
        groq = StubModelBackend(family=GROQ, error=AuthError("invalid api key", status_code=401))
        anthropic = StubModelBackend(family=ANTHROPIC)
        client = UnifiedDispatchClient(
            make_catalog(
                TaskType.COMPLIANCE,
                [(OLLAMA, "llama3.2"), (GROQ, "llama-70b"), (GROQ, "llama-8b"), (ANTHROPIC, SONNET)],
            ),
            {OLLAMA: ollama, GROQ: groq, ANTHROPIC: anthropic},
            probe_timeout_s=0.05,
        )

        response = await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert response.backend_family == "anthropic"
        assert response.model_id == SONNET
        assert ollama.calls == []
        assert groq.calls == ["llama-70b"]

    @pytest.mark.asyncio
    async def test_scenario_d_all_providers_fail(self):
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(OLLAMA, "llama3.2"), (GROQ, "llama-70b"), (ANTHROPIC, SONNET)]),
            {
                OLLAMA: local(available=False),
                GROQ: StubModelBackend(family=GROQ, error=TransportError("connection reset")),
                ANTHROPIC: StubModelBackend(family=ANTHROPIC, error=TransportError("503")),
            },
        )

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await client.dispatch(TaskType.COMPLIANCE, make_request())

        failure = exc_info.value
        assert failure.attempted == [("groq", "llama-70b"), ("anthropic", SONNET)]
        assert failure.skipped == [("ollama", "llama3.2", "unavailable")]
        assert failure.poisoned is False
        assert "compliance" in str(failure)
        assert any("Ollama" in line for line in failure.remediation())

    @pytest.mark.asyncio
    async def test_call_timeout_is_transport_error(self):
        slow = SlowBackend(family=GROQ)
        client = UnifiedDispatchClient(
            make_catalog(TaskType.COMPLIANCE, [(GROQ, "llama-70b")]),
            {GROQ: slow},
            call_timeout_s=0.05,
        )

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await client.dispatch(TaskType.COMPLIANCE, make_request())

        assert [f.error_class for f in exc_info.value.failures] == [ErrorClass.TRANSPORT_ERROR]


# ─────────────────────────────────────────────────────
# JSON dispatch
# ─────────────────────────────────────────────────────


class TestDispatchJson:
    @pytest.mark.asyncio
    async def test_decodes_into_shape(self, make_answer):
        groq = StubModelBackend(family=GROQ, responses={TaskType.FLIGHT_TIME: make_answer(TaskType.FLIGHT_TIME)})
        client = UnifiedDispatchClient(make_catalog(TaskType.FLIGHT_TIME, [(GROQ, "llama-70b")]), {GROQ: groq})

        answer, response = await client.dispatch_json(
            TaskType.FLIGHT_TIME, make_request(TaskType.FLIGHT_TIME), FlightTimeAnswer
        )

        assert answer.validated is True
        assert response.model_id == "llama-70b"

    @pytest.mark.asyncio
    async def test_malformed_output_is_not_retried(self):
        groq = StubModelBackend(family=GROQ, responses={TaskType.FLIGHT_TIME: "I think it is fine."})
        anthropic = StubModelBackend(family=ANTHROPIC)
        client = UnifiedDispatchClient(
            make_catalog(TaskType.FLIGHT_TIME, [(GROQ, "llama-70b"), (ANTHROPIC, SONNET)]),
            {GROQ: groq, ANTHROPIC: anthropic},
        )

        with pytest.raises(DecodeFailure) as exc_info:
            await client.dispatch_json(TaskType.FLIGHT_TIME, make_request(TaskType.FLIGHT_TIME), FlightTimeAnswer)

        assert groq.calls == ["llama-70b"]
        assert anthropic.calls == []
        assert exc_info.value.failure.error_class == ErrorClass.MALFORMED_OUTPUT
        assert exc_info.value.failure.backend_family == "groq"
