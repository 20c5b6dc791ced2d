"""
Groq backend: hosted OpenAI-compatible chat completions.

Used as the free-tier online alternative when the local Ollama server is not
reachable. Auth is a bearer key; errors come back as {"error": {"message"}}.
"""

import logging

import httpx

from .base import ModelBackend
from .catalog import ProviderConfig
from .errors import AuthError, TransportError, error_from_status
from .types import BackendFamily, NormalizedResponse, StopReason, TaskRequest, Usage

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class GroqModelBackend(ModelBackend):
    family = BackendFamily.GROQ

    def __init__(self, base_url: str = GROQ_BASE_URL, timeout_s: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    async def generate(self, request: TaskRequest, config: ProviderConfig) -> NormalizedResponse:
        if not config.credential:
            raise AuthError("GROQ_API_KEY is not configured", status_code=401)

        payload = {
            "model": config.model_id,
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_instruction},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_output_tokens,
            "stream": False,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.credential}",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions", json=payload, headers=headers
                )
        except httpx.TimeoutException as e:
            raise TransportError(f"Groq request timed out after {self.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Groq API call failed: {e}") from e

        if response.status_code >= 400:
            raise error_from_status(response.status_code, _error_message(response), "Groq")

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("Groq returned a non-JSON body") from e

        choice = (data.get("choices") or [{}])[0]
        usage = data.get("usage") or {}
        finish_reason = choice.get("finish_reason") or "stop"

        return NormalizedResponse(
            text=(choice.get("message") or {}).get("content") or "",
            usage=Usage(
                input_tokens=int(usage.get("prompt_tokens") or 0),
                output_tokens=int(usage.get("completion_tokens") or 0),
            ),
            stop_reason=StopReason.TRUNCATED if finish_reason == "length" else StopReason.COMPLETE,
            backend_family=self.family.value,
            model_id=config.model_id,
        )


def _error_message(response) -> str:
    """Best-effort extraction of the provider's error message."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return response.text
