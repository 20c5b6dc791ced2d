"""
Exception taxonomy for the inference boundary.

Adapters raise BackendError subclasses; the dispatch client catches them,
records a FailureRecord and moves to the next provider. DecodeFailure is raised
after a provider answered successfully but not in the agreed shape, so it is
kept apart from DispatchFailure.
"""

from typing import List, Optional, Tuple

from .types import ErrorClass, FailureRecord

_BILLING_MARKERS = (
    "credit balance",
    "insufficient funds",
    "too low",
    "payment required",
    "insufficient_quota",
    "quota exceeded",
)


class BackendError(Exception):
    """Base class for failures raised by a backend adapter."""

    error_class: ErrorClass = ErrorClass.TRANSPORT_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthError(BackendError):
    error_class = ErrorClass.AUTH_ERROR


class CreditExhausted(BackendError):
    error_class = ErrorClass.CREDIT_EXHAUSTED


class RateLimited(BackendError):
    error_class = ErrorClass.RATE_LIMITED


class TransportError(BackendError):
    error_class = ErrorClass.TRANSPORT_ERROR


class DecodeFailure(Exception):
    """The backend answered, but the text is not the expected structured shape."""

    error_class = ErrorClass.MALFORMED_OUTPUT

    def __init__(self, message: str, raw_text: str = ""):
        self.message = message
        self.raw_text = raw_text
        # Set by the dispatch client once the answering provider is known
        self.failure: Optional[FailureRecord] = None
        self.response = None
        super().__init__(message)


class DispatchFailure(Exception):
    """No provider produced a response for a task."""


class AllProvidersExhausted(DispatchFailure):
    """
    Every configured provider for a task was tried or skipped.

    Attributes:
        task_type: Task the call was routed for
        attempted: (family, model) pairs whose adapter was actually invoked
        failures: FailureRecord per failed attempt, in attempt order
        skipped: (family, model, reason) for configs never invoked
        poisoned: True when a credential/billing failure poisoned a family
    """

    def __init__(
        self,
        task_type: str,
        attempted: List[Tuple[str, str]],
        failures: List[FailureRecord],
        skipped: List[Tuple[str, str, str]],
        poisoned: bool,
    ):
        self.task_type = task_type
        self.attempted = attempted
        self.failures = failures
        self.skipped = skipped
        self.poisoned = poisoned
        attempted_text = ", ".join(f"{f}/{m}" for f, m in attempted) or "none"
        super().__init__(
            f"All LLM providers failed for task type: {task_type}. Attempted: {attempted_text}"
        )

    def remediation(self) -> List[str]:
        """Operator-facing suggestions tailored to how the call failed."""
        if self.poisoned:
            return [
                "Add credits to the cloud provider account or replace its API key",
                "Set up Ollama locally for free local inference",
                "Check ANTHROPIC_API_KEY / GROQ_API_KEY in the environment",
            ]
        return [
            "Set up Ollama locally for free local inference",
            "Check your API keys and provider configurations",
        ]


def classify_status(status_code: int, message: str = "") -> type:
    """
    Map an HTTP status (plus provider wording) to a BackendError subclass.

    400 is only a billing failure when the provider's message says so;
    otherwise it is treated as a transport-level rejection of this config.
    """
    lowered = (message or "").lower()
    if status_code in (401, 403):
        return AuthError
    if status_code == 402 or any(marker in lowered for marker in _BILLING_MARKERS):
        return CreditExhausted
    if status_code == 429:
        return RateLimited
    return TransportError


def error_from_status(status_code: int, message: str, provider: str) -> BackendError:
    """Build the classified BackendError for a non-2xx provider response."""
    cls = classify_status(status_code, message)
    return cls(f"{provider} API returned status {status_code}: {message}", status_code=status_code)
