"""
Provider catalog: the per-task ranked ladder of inference backends.

Each task type maps to an ordered list of ProviderConfig entries. Lower
priority numbers are tried first, so the list encodes a cost/quality ladder:
free local inference, then hosted free tier, then premium cloud.

Costs are structured numbers per million tokens (or flat / free), never prose.
Credentials are resolved from the environment once, when the catalog is built.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from .types import BackendFamily, TaskType, Usage

_MILLION = Decimal(1_000_000)


@dataclass(frozen=True)
class CostModel:
    """Pricing for one provider config."""

    kind: str = "free"  # free | flat | per_million
    flat_amount: Decimal = Decimal("0")
    input_per_million: Decimal = Decimal("0")
    output_per_million: Decimal = Decimal("0")

    @classmethod
    def free(cls) -> "CostModel":
        return cls(kind="free")

    @classmethod
    def flat(cls, amount: str) -> "CostModel":
        return cls(kind="flat", flat_amount=Decimal(amount))

    @classmethod
    def per_million(cls, input_cost: str, output_cost: str) -> "CostModel":
        return cls(
            kind="per_million",
            input_per_million=Decimal(input_cost),
            output_per_million=Decimal(output_cost),
        )

    def estimate(self, usage: Usage) -> Decimal:
        """Estimated spend for a call with the given token usage."""
        if self.kind == "flat":
            return self.flat_amount
        if self.kind == "per_million":
            cost = (
                Decimal(usage.input_tokens) * self.input_per_million
                + Decimal(usage.output_tokens) * self.output_per_million
            ) / _MILLION
            return cost.quantize(Decimal("0.000001"))
        return Decimal("0")


@dataclass(frozen=True)
class ProviderConfig:
    backend_family: BackendFamily
    model_id: str
    cost_model: CostModel
    priority: int
    credential: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.backend_family.value}/{self.model_id}"

    def __repr__(self) -> str:
        # Credentials never appear in logs or reprs
        return (
            f"ProviderConfig({self.key}, priority={self.priority}, "
            f"credential={'set' if self.credential else 'unset'})"
        )


# Families that need an API key before they can be attempted at all
CREDENTIALED_FAMILIES = frozenset(
    {BackendFamily.GROQ, BackendFamily.ANTHROPIC, BackendFamily.OPENAI}
)

SONNET = "claude-sonnet-4-5-20250929"
OPUS = "claude-opus-4-20250514"

SONNET_COST = CostModel.per_million("3", "15")
OPUS_COST = CostModel.per_million("15", "75")
GPT4O_MINI_COST = CostModel.per_million("0.15", "0.60")
GROQ_COST = CostModel.per_million("0.59", "0.79")


def default_ladders(ollama_model: str, groq_model: str) -> Dict[TaskType, List[ProviderConfig]]:
    """The shipped provider ladders (credentials not yet attached)."""
    local = ProviderConfig(BackendFamily.OLLAMA, ollama_model, CostModel.free(), 0)
    hosted = ProviderConfig(BackendFamily.GROQ, groq_model, GROQ_COST, 1)

    return {
        TaskType.FLIGHT_TIME: [
            local,
            hosted,
            ProviderConfig(BackendFamily.OPENAI, "gpt-4o-mini", GPT4O_MINI_COST, 2),
            ProviderConfig(BackendFamily.ANTHROPIC, SONNET, SONNET_COST, 3),
        ],
        TaskType.PREMIUM_PAY: [
            local,
            hosted,
            ProviderConfig(BackendFamily.ANTHROPIC, SONNET, SONNET_COST, 2),
        ],
        TaskType.COMPLIANCE: [
            local,
            hosted,
            ProviderConfig(BackendFamily.ANTHROPIC, SONNET, SONNET_COST, 2),
            ProviderConfig(BackendFamily.ANTHROPIC, OPUS, OPUS_COST, 3),
        ],
        TaskType.ORCHESTRATOR: [
            local,
            hosted,
            ProviderConfig(BackendFamily.ANTHROPIC, SONNET, SONNET_COST, 2),
        ],
    }


def stub_ladders(model_id: str = "stub-model") -> Dict[TaskType, List[ProviderConfig]]:
    """One free stub rung per task type (CI and offline demos)."""
    stub = ProviderConfig(BackendFamily.STUB, model_id, CostModel.free(), 0)
    return {task: [stub] for task in TaskType}


class ProviderCatalog:
    """
    Read-only mapping of task type to its sorted provider ladder.

    Sorting is stable, so configs sharing a priority keep their declared
    order and selection is fully deterministic.
    """

    FALLBACK_TASK = TaskType.ORCHESTRATOR

    def __init__(self, ladders: Mapping[TaskType, List[ProviderConfig]]):
        self._ladders: Dict[TaskType, tuple] = {
            task: tuple(sorted(configs, key=lambda c: c.priority))
            for task, configs in ladders.items()
        }

    def configs_for(self, task_type: TaskType) -> List[ProviderConfig]:
        """Ordered configs for a task; unknown task types use the orchestrator ladder."""
        ladder = self._ladders.get(task_type)
        if ladder is None:
            ladder = self._ladders.get(self.FALLBACK_TASK, ())
        return list(ladder)

    def task_types(self) -> List[TaskType]:
        return list(self._ladders)

    @classmethod
    def build(
        cls,
        credentials: Mapping[BackendFamily, Optional[str]],
        ollama_model: str = "llama3.2:latest",
        groq_model: str = "llama-3.3-70b-versatile",
        ladders: Optional[Mapping[TaskType, List[ProviderConfig]]] = None,
    ) -> "ProviderCatalog":
        """
        Attach credentials to every config of the given ladders.

        Args:
            credentials: API key per credentialed family (None or "" when unset)
            ollama_model: Local model tag used on the free rung
            groq_model: Hosted model used on the free-tier rung
            ladders: Override the shipped ladders (tests, custom deployments)
        """
        source = ladders if ladders is not None else default_ladders(ollama_model, groq_model)
        resolved = {}
        for task, configs in source.items():
            resolved[task] = [
                replace(config, credential=(credentials.get(config.backend_family) or None))
                if config.backend_family in CREDENTIALED_FAMILIES
                else config
                for config in configs
            ]
        return cls(resolved)
