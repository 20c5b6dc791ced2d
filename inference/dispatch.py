"""
Unified dispatch client.

Routes one TaskRequest through the provider ladder for its task type and
returns the first successful NormalizedResponse.

Per call:
  1. Walk the ladder in priority order.
  2. Probed families (local Ollama) are checked through the availability
     cache; an unreachable backend is skipped, not counted as a failure.
  3. Credentialed families without a key are skipped.
  4. The adapter is invoked under its own timeout. First success wins.
  5. Failures are classified. auth_error / credit_exhausted poison the whole
     family for the rest of THIS call; every other class only fails the
     current config.
  6. When the ladder is exhausted, AllProvidersExhausted carries every
     attempt, failure and skip.

Invariants:
- Poisoning is call-scoped: the poison set is a local of dispatch()
- A poisoned family receives zero adapter invocations after poisoning
- Selection order is the catalog order; nothing is randomized
- The availability cache is the only state shared between calls
"""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Set, Tuple, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from agent.tracing import NoOpTracer, TraceMetadata, Tracer

from .availability import AvailabilityCache
from .base import ModelBackend
from .catalog import CREDENTIALED_FAMILIES, ProviderCatalog, ProviderConfig
from .decoder import JSON_ONLY_SUFFIX, decode
from .errors import AllProvidersExhausted, BackendError, DecodeFailure, TransportError
from .types import (
    BackendFamily,
    ErrorClass,
    FailureRecord,
    NormalizedResponse,
    TaskRequest,
    TaskType,
    Usage,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_PROBE_TIMEOUT_S = 2.0
DEFAULT_CALL_TIMEOUT_S = 60.0
COST_WARNING_INPUT_TOKENS = 10_000


class UnifiedDispatchClient:
    """
    Provider-routing client shared by every task agent.

    Usage:
        client = UnifiedDispatchClient(catalog, backends, AvailabilityCache())
        response = await client.dispatch(TaskType.PREMIUM_PAY, request)
    """

    def __init__(
        self,
        catalog: ProviderCatalog,
        backends: Dict[BackendFamily, ModelBackend],
        availability: Optional[AvailabilityCache] = None,
        probe_timeout_s: float = DEFAULT_PROBE_TIMEOUT_S,
        call_timeout_s: float = DEFAULT_CALL_TIMEOUT_S,
        tracer: Optional[Tracer] = None,
    ):
        """
        Args:
            catalog: Provider ladders per task type
            backends: One adapter per implemented family
            availability: Shared reachability cache for probed families
            probe_timeout_s: Upper bound on one availability probe
            call_timeout_s: Upper bound on one inference call
            tracer: Passive observability sink (NoOpTracer by default)
        """
        self.catalog = catalog
        self.backends = dict(backends)
        self.availability = availability or AvailabilityCache()
        self.probe_timeout_s = probe_timeout_s
        self.call_timeout_s = call_timeout_s
        self.tracer = tracer or NoOpTracer()

    async def dispatch(
        self,
        task_type: TaskType,
        request: TaskRequest,
        force_family: Optional[BackendFamily] = None,
        force_model: Optional[str] = None,
        skip_local: bool = False,
        trace_metadata: Optional[TraceMetadata] = None,
    ) -> NormalizedResponse:
        """
        Return the first successful response along the ladder for `task_type`.

        Args:
            task_type: Selects the provider ladder
            request: The normalized call
            force_family: Only consider configs of this family
            force_model: Only consider configs with this model id
            skip_local: Skip probed (local) families entirely
            trace_metadata: Trace identity for emitted events

        Raises:
            AllProvidersExhausted: every config was tried or skipped
        """
        trace_metadata = trace_metadata or TraceMetadata(trace_id=str(uuid4()))

        poisoned: Set[BackendFamily] = set()
        attempted: List[Tuple[str, str]] = []
        failures: List[FailureRecord] = []
        skipped: List[Tuple[str, str, str]] = []

        for config in self.catalog.configs_for(task_type):
            family = config.backend_family

            if force_family is not None and family != force_family:
                continue
            if force_model is not None and config.model_id != force_model:
                continue

            reason = await self._skip_reason(config, poisoned, skip_local)
            if reason is not None:
                skipped.append((family.value, config.model_id, reason))
                if reason == "not_implemented":
                    failures.append(
                        FailureRecord(
                            family.value,
                            config.model_id,
                            ErrorClass.NOT_IMPLEMENTED,
                            "Provider not yet implemented",
                        )
                    )
                logger.info(f"Skipping {config.key}: {reason}")
                self._emit("provider_skipped", {"backend": config.key, "operation": reason}, trace_metadata)
                continue

            self._warn_cost(config, request)
            attempted.append((family.value, config.model_id))
            logger.info(f"Dispatching {task_type.value} to {config.key}")

            try:
                response = await self._invoke(self.backends[family], request, config)
            except BackendError as e:
                record = FailureRecord(family.value, config.model_id, e.error_class, e.message)
            except Exception as e:
                logger.exception(f"Unexpected error from {config.key}")
                record = FailureRecord(
                    family.value, config.model_id, ErrorClass.TRANSPORT_ERROR, f"{type(e).__name__}: {e}"
                )
            else:
                response = replace(response, estimated_cost=config.cost_model.estimate(response.usage))
                self._emit(
                    "provider_selected",
                    {"backend": config.key, "status": "success", "operation": task_type.value},
                    trace_metadata,
                )
                return response

            failures.append(record)
            logger.error(f"{config.key} failed ({record.error_class.value}): {record.message}")
            self._emit(
                "provider_failed",
                {"backend": config.key, "error_type": record.error_class.value},
                trace_metadata,
            )

            if record.poisons_family and family not in poisoned:
                poisoned.add(family)
                logger.warning(
                    f"Skipping remaining {family.value} configs for this call "
                    f"due to {record.error_class.value}"
                )
                self._emit(
                    "family_poisoned",
                    {"backend": family.value, "error_type": record.error_class.value},
                    trace_metadata,
                )

        failure = AllProvidersExhausted(
            task_type=task_type.value,
            attempted=attempted,
            failures=failures,
            skipped=skipped,
            poisoned=bool(poisoned),
        )
        logger.error(str(failure))
        self._emit(
            "providers_exhausted",
            {"operation": task_type.value, "node_count": len(attempted)},
            trace_metadata,
        )
        raise failure

    async def dispatch_json(
        self,
        task_type: TaskType,
        request: TaskRequest,
        shape: Type[T],
        trace_metadata: Optional[TraceMetadata] = None,
    ) -> Tuple[T, NormalizedResponse]:
        """
        Dispatch with a JSON-only instruction and decode the answer into `shape`.

        A malformed answer is not retried against any provider.

        Raises:
            AllProvidersExhausted: no provider answered
            DecodeFailure: a provider answered but not in `shape`
        """
        json_request = replace(
            request, system_instruction=request.system_instruction + JSON_ONLY_SUFFIX
        )
        response = await self.dispatch(task_type, json_request, trace_metadata=trace_metadata)

        try:
            return decode(response.text, shape), response
        except DecodeFailure as e:
            e.failure = FailureRecord(
                response.backend_family, response.model_id, ErrorClass.MALFORMED_OUTPUT, e.message
            )
            e.response = response
            logger.error(
                f"Malformed output from {response.backend_family}/{response.model_id}: {e.message}"
            )
            self._emit(
                "provider_failed",
                {
                    "backend": f"{response.backend_family}/{response.model_id}",
                    "error_type": ErrorClass.MALFORMED_OUTPUT.value,
                },
                trace_metadata or TraceMetadata(trace_id=str(uuid4())),
            )
            raise

    async def _skip_reason(
        self, config: ProviderConfig, poisoned: Set[BackendFamily], skip_local: bool
    ) -> Optional[str]:
        family = config.backend_family
        if family in poisoned:
            return "family_poisoned"

        backend = self.backends.get(family)
        if backend is None:
            return "not_implemented"

        if backend.requires_probe:
            if skip_local:
                return "local_skipped"
            available = await self.availability.check(family.value, lambda: self._probe(backend))
            if not available:
                return "unavailable"

        if family in CREDENTIALED_FAMILIES and not config.credential:
            return "missing_credential"

        return None

    async def _probe(self, backend: ModelBackend) -> bool:
        try:
            return await asyncio.wait_for(
                backend.probe(self.probe_timeout_s), timeout=self.probe_timeout_s
            )
        except asyncio.TimeoutError:
            logger.info(f"{backend.family.value} probe timed out after {self.probe_timeout_s}s")
            return False

    async def _invoke(
        self, backend: ModelBackend, request: TaskRequest, config: ProviderConfig
    ) -> NormalizedResponse:
        try:
            return await asyncio.wait_for(
                backend.generate(request, config), timeout=self.call_timeout_s
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"{config.key} did not answer within {self.call_timeout_s}s"
            ) from e

    def _warn_cost(self, config: ProviderConfig, request: TaskRequest) -> None:
        tokens = request.estimated_input_tokens
        if "opus" not in config.model_id and tokens <= COST_WARNING_INPUT_TOKENS:
            return
        estimate = config.cost_model.estimate(Usage(input_tokens=tokens, output_tokens=tokens))
        logger.warning(
            f"COST WARNING: using {config.key}, estimated ~${estimate:.4f} "
            f"for ~{tokens} input tokens"
        )

    def _emit(self, name: str, metadata: dict, trace_metadata: TraceMetadata) -> None:
        try:
            self.tracer.record_event(name, metadata, trace_metadata)
        except Exception:
            # Tracing failure is non-fatal
            pass
