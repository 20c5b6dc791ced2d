import logging

import httpx

from .base import ModelBackend
from .catalog import ProviderConfig
from .errors import TransportError, error_from_status
from .types import BackendFamily, NormalizedResponse, StopReason, TaskRequest, Usage

logger = logging.getLogger(__name__)


class OllamaModelBackend(ModelBackend):
    """
    Ollama backend for local model inference.

    Uses /api/chat so the system instruction travels in the system role.
    Reachability is checked through /api/tags: the server must answer and
    have at least one model pulled.
    """

    family = BackendFamily.OLLAMA
    requires_probe = True

    def __init__(self, base_url: str = "http://localhost:11434", timeout_s: float = 60.0):
        """
        Initialize Ollama backend.

        Args:
            base_url:  Base URL of the Ollama service
            timeout_s: Per-call HTTP timeout for inference requests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    async def probe(self, timeout_s: float) -> bool:
        try:
            async with httpx.AsyncClient(timeout=timeout_s) as client:
                response = await client.get(f"{self.base_url}/api/tags")
            if response.status_code != 200:
                return False
            models = response.json().get("models")
            return isinstance(models, list) and len(models) > 0
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Ollama probe failed: {e}")
            return False

    async def generate(self, request: TaskRequest, config: ProviderConfig) -> NormalizedResponse:
        """
        Generate a response using Ollama /api/chat.

        Raises:
            TransportError: timeout, connection failure or 5xx
            BackendError: other non-2xx statuses, classified by status code
        """
        payload = {
            "model": config.model_id,
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_instruction},
            ],
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_output_tokens,
            },
            "stream": False,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.post(f"{self.base_url}/api/chat", json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(f"Ollama request timed out after {self.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Ollama API call failed: {e}") from e

        if response.status_code >= 400:
            raise error_from_status(response.status_code, response.text, "Ollama")

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("Ollama returned a non-JSON body") from e

        content = (data.get("message") or {}).get("content") or ""
        truncated = data.get("done_reason") == "length" or not data.get("done", True)

        return NormalizedResponse(
            text=content,
            usage=Usage(
                input_tokens=int(data.get("prompt_eval_count") or 0),
                output_tokens=int(data.get("eval_count") or 0),
            ),
            stop_reason=StopReason.TRUNCATED if truncated else StopReason.COMPLETE,
            backend_family=self.family.value,
            model_id=config.model_id,
        )
