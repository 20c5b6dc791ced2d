"""
Anthropic backend (Claude) via the official async SDK.

SDK exceptions are translated into the inference error taxonomy so the
dispatch client can decide whether to poison the family or just move on.
SDK-level retries are disabled: fallback across providers is the dispatch
client's job.
"""

import logging
from typing import Dict

import anthropic

from .base import ModelBackend
from .catalog import ProviderConfig
from .errors import (
    AuthError,
    BackendError,
    CreditExhausted,
    RateLimited,
    TransportError,
    classify_status,
)
from .types import BackendFamily, NormalizedResponse, StopReason, TaskRequest, Usage

logger = logging.getLogger(__name__)


class ClaudeModelBackend(ModelBackend):
    family = BackendFamily.ANTHROPIC

    def __init__(self, timeout_s: float = 60.0):
        self.timeout_s = timeout_s
        self._clients: Dict[str, anthropic.AsyncAnthropic] = {}

    def _client(self, api_key: str) -> anthropic.AsyncAnthropic:
        client = self._clients.get(api_key)
        if client is None:
            client = anthropic.AsyncAnthropic(
                api_key=api_key, timeout=self.timeout_s, max_retries=0
            )
            self._clients[api_key] = client
        return client

    async def generate(self, request: TaskRequest, config: ProviderConfig) -> NormalizedResponse:
        if not config.credential:
            raise AuthError("ANTHROPIC_API_KEY is not configured", status_code=401)

        try:
            message = await self._client(config.credential).messages.create(
                model=config.model_id,
                max_tokens=request.max_output_tokens,
                temperature=request.temperature,
                system=request.system_instruction,
                messages=[{"role": "user", "content": request.user_instruction}],
            )
        except anthropic.APIError as e:
            raise translate_error(e) from e

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        stop_reason = (
            StopReason.TRUNCATED if message.stop_reason == "max_tokens" else StopReason.COMPLETE
        )

        return NormalizedResponse(
            text=text,
            usage=Usage(
                input_tokens=message.usage.input_tokens,
                output_tokens=message.usage.output_tokens,
            ),
            stop_reason=stop_reason,
            backend_family=self.family.value,
            model_id=config.model_id,
        )


def translate_error(error: Exception) -> BackendError:
    """Map an anthropic SDK exception to the inference error taxonomy."""
    message = getattr(error, "message", None) or str(error)

    if isinstance(error, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return AuthError(f"Anthropic API authentication failed: {message}", status_code=401)
    if isinstance(error, anthropic.RateLimitError):
        return RateLimited(f"Anthropic API rate limit exceeded: {message}", status_code=429)
    if isinstance(error, anthropic.APIConnectionError):
        # Includes APITimeoutError
        return TransportError(f"Anthropic API unreachable: {message}")
    if isinstance(error, anthropic.APIStatusError):
        cls = classify_status(error.status_code, message)
        if cls is CreditExhausted:
            return CreditExhausted(
                f"Anthropic API credit balance is insufficient: {message}",
                status_code=error.status_code,
            )
        return cls(f"Claude API call failed: {message}", status_code=error.status_code)
    return TransportError(f"Claude API call failed: {message}")
