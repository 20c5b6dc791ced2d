"""
Normalized call contract shared by every backend adapter.

A TaskRequest goes in, a NormalizedResponse comes out. Adapters translate
these to and from their own wire protocols; nothing above the inference
boundary ever sees a provider-specific payload.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class TaskType(str, Enum):
    """Reasoning tasks that can be routed to a provider ladder."""

    FLIGHT_TIME = "flight_time"
    PREMIUM_PAY = "premium_pay"
    COMPLIANCE = "compliance"
    ORCHESTRATOR = "orchestrator"


class BackendFamily(str, Enum):
    """Inference service classes sharing one wire protocol and credential type."""

    OLLAMA = "ollama"        # locally hosted model server, free
    GROQ = "groq"            # hosted OpenAI-compatible API, free tier
    ANTHROPIC = "anthropic"  # premium cloud
    OPENAI = "openai"        # declared in the catalog, no adapter yet
    STUB = "stub"            # deterministic, CI/tests


class StopReason(str, Enum):
    COMPLETE = "complete"
    TRUNCATED = "truncated"


class ErrorClass(str, Enum):
    """Failure taxonomy used by the dispatch client."""

    AUTH_ERROR = "auth_error"
    CREDIT_EXHAUSTED = "credit_exhausted"
    RATE_LIMITED = "rate_limited"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_OUTPUT = "malformed_output"
    NOT_IMPLEMENTED = "not_implemented"


# Error classes that poison the whole backend family for the rest of a call
POISONING_ERRORS = frozenset({ErrorClass.AUTH_ERROR, ErrorClass.CREDIT_EXHAUSTED})


@dataclass(frozen=True)
class TaskRequest:
    """
    One inference call, built fresh per call and never mutated.

    Invariants:
    - 0 <= temperature <= 2
    - max_output_tokens > 0
    """

    system_instruction: str
    user_instruction: str
    task_type: TaskType
    temperature: float = 0.3
    max_output_tokens: int = 2000

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be within [0, 2]; got {self.temperature}")
        if self.max_output_tokens <= 0:
            raise ValueError(f"max_output_tokens must be positive; got {self.max_output_tokens}")

    @property
    def estimated_input_tokens(self) -> int:
        """Rough token estimate (4 characters per token)."""
        chars = len(self.system_instruction) + len(self.user_instruction)
        return -(-chars // 4)


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class NormalizedResponse:
    """Successful provider answer in the shared shape."""

    text: str
    usage: Usage
    stop_reason: StopReason
    backend_family: str
    model_id: str
    estimated_cost: Optional[Decimal] = None


@dataclass(frozen=True)
class FailureRecord:
    """One failed provider attempt inside a single dispatch call. Never persisted."""

    backend_family: str
    model_id: str
    error_class: ErrorClass
    message: str = field(default="", compare=False)

    @property
    def poisons_family(self) -> bool:
        return self.error_class in POISONING_ERRORS
