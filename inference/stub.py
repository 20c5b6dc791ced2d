import json
from typing import Dict, List, Optional

from .base import ModelBackend
from .catalog import ProviderConfig
from .errors import BackendError
from .types import BackendFamily, NormalizedResponse, StopReason, TaskRequest, TaskType, Usage

# Canned answers that decode cleanly into each task's expected shape
_DEFAULT_ANSWERS: Dict[TaskType, dict] = {
    TaskType.FLIGHT_TIME: {
        "status": "completed",
        "confidence": 0.95,
        "summary": "Trip and flight time verified",
        "details": ["Trip found and matches claimed flight"],
        "reasoning": "Stubbed flight time analysis.",
        "validated": True,
        "discrepancies": [],
    },
    TaskType.PREMIUM_PAY: {
        "status": "completed",
        "confidence": 0.95,
        "summary": "Claimed amount matches contract rate",
        "details": ["Rate looked up for claim type"],
        "reasoning": "Stubbed premium pay calculation.",
        "calculatedAmount": 125.0,
        "claimedAmount": 125.0,
        "amountCorrect": True,
        "applicableSections": [],
        "contractReferences": [],
    },
    TaskType.COMPLIANCE: {
        "status": "completed",
        "confidence": 0.95,
        "summary": "No compliance issues found",
        "details": ["Claim filed within deadline"],
        "reasoning": "Stubbed compliance check.",
        "compliant": True,
        "issues": [],
        "fraudRisk": "none",
        "fraudIndicators": [],
    },
}


class StubModelBackend(ModelBackend):
    """
    Deterministic fake model for testing and CI.

    This backend is fast, deterministic, and never fails silently. It can
    impersonate any backend family so dispatch ladders can be exercised
    without network access.

    Args:
        family: Family this stub answers for (STUB by default)
        responses: Raw text per task type, overriding the canned answers
        error: BackendError raised on every generate() call
        available: Result of probe(); set requires_probe to have it consulted
        requires_probe: Whether the dispatch client should probe this stub
    """

    def __init__(
        self,
        family: BackendFamily = BackendFamily.STUB,
        responses: Optional[Dict[TaskType, str]] = None,
        error: Optional[BackendError] = None,
        available: bool = True,
        requires_probe: bool = False,
    ):
        self.family = family
        self.responses = responses or {}
        self.error = error
        self.available = available
        self.requires_probe = requires_probe
        self.calls: List[str] = []
        self.probe_count = 0

    async def probe(self, timeout_s: float) -> bool:
        self.probe_count += 1
        return self.available

    async def generate(self, request: TaskRequest, config: ProviderConfig) -> NormalizedResponse:
        self.calls.append(config.model_id)

        if self.error is not None:
            raise self.error

        text = self.responses.get(request.task_type)
        if text is None:
            answer = _DEFAULT_ANSWERS.get(request.task_type, {"status": "completed", "confidence": 0.5})
            text = json.dumps(answer)

        return NormalizedResponse(
            text=text,
            usage=Usage(
                input_tokens=request.estimated_input_tokens,
                output_tokens=-(-len(text) // 4),
            ),
            stop_reason=StopReason.COMPLETE,
            backend_family=self.family.value,
            model_id=config.model_id,
        )
