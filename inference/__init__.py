"""
Model boundary layer for LLM inference.

This package keeps the task agents agnostic of which provider answers.
Every call goes through UnifiedDispatchClient, which walks a priority
ladder of (family, model) configs and returns the first success.

Supported backends:
- OllamaModelBackend: Local Ollama inference (free, probed)
- GroqModelBackend: Hosted OpenAI-compatible API (free tier)
- ClaudeModelBackend: Anthropic Claude (premium)
- StubModelBackend: Deterministic fake model (CI/tests)

Example usage:
    from inference import UnifiedDispatchClient, ProviderCatalog, TaskRequest, TaskType

    client = UnifiedDispatchClient(ProviderCatalog.build({}), {BackendFamily.STUB: StubModelBackend()})
    response = await client.dispatch(TaskType.COMPLIANCE, request)
"""

from .types import (
    BackendFamily,
    ErrorClass,
    FailureRecord,
    NormalizedResponse,
    StopReason,
    TaskRequest,
    TaskType,
    Usage,
)
from .errors import (
    AllProvidersExhausted,
    AuthError,
    BackendError,
    CreditExhausted,
    DecodeFailure,
    DispatchFailure,
    RateLimited,
    TransportError,
)
from .catalog import CostModel, ProviderCatalog, ProviderConfig
from .availability import AvailabilityCache
from .base import ModelBackend
from .decoder import decode
from .stub import StubModelBackend
from .ollama import OllamaModelBackend
from .groq import GroqModelBackend
from .claude import ClaudeModelBackend
from .dispatch import UnifiedDispatchClient

__all__ = [
    "BackendFamily",
    "ErrorClass",
    "FailureRecord",
    "NormalizedResponse",
    "StopReason",
    "TaskRequest",
    "TaskType",
    "Usage",
    "AllProvidersExhausted",
    "AuthError",
    "BackendError",
    "CreditExhausted",
    "DecodeFailure",
    "DispatchFailure",
    "RateLimited",
    "TransportError",
    "CostModel",
    "ProviderCatalog",
    "ProviderConfig",
    "AvailabilityCache",
    "ModelBackend",
    "decode",
    "StubModelBackend",
    "OllamaModelBackend",
    "GroqModelBackend",
    "ClaudeModelBackend",
    "UnifiedDispatchClient",
]
