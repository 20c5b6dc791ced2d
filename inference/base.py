from abc import ABC, abstractmethod

from .catalog import ProviderConfig
from .types import BackendFamily, NormalizedResponse, TaskRequest


class ModelBackend(ABC):
    """
    Abstract model boundary, one implementation per backend family.
    The dispatch client depends ONLY on this interface.
    """

    family: BackendFamily

    # Local/free families are probed through the availability cache before use
    requires_probe: bool = False

    @abstractmethod
    async def generate(self, request: TaskRequest, config: ProviderConfig) -> NormalizedResponse:
        """
        Generate a response from the model named by `config`.

        Raises:
            BackendError: classified failure (auth, credit, rate limit, transport)
        """
        raise NotImplementedError

    async def probe(self, timeout_s: float) -> bool:
        """Return True when the backend is reachable. Only probed families override this."""
        return True
