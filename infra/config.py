"""
Infrastructure configuration system.

Environment-based component construction with sensible defaults.
Defaults prioritize the free, local-first stack: Ollama first, then the
Groq free tier, then paid cloud providers.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional

import config  # noqa: F401  (loads .env)
from agent.knowledge import ResilientKnowledgeBase, RuleKnowledgeBase, StaticRuleKnowledgeBase
from agent.orchestrator import ClaimOrchestrator
from agent.persistence import ClaimRecorder, DisabledClaimRecorder, InMemoryClaimRecorder, SQLiteClaimRecorder
from agent.service import ValidationService
from agent.tracing import Tracer, create_tracer
from inference import (
    AvailabilityCache,
    BackendFamily,
    ClaudeModelBackend,
    GroqModelBackend,
    ModelBackend,
    OllamaModelBackend,
    ProviderCatalog,
    StubModelBackend,
    UnifiedDispatchClient,
)
from inference.catalog import stub_ladders
from inference.groq import GROQ_BASE_URL

TracerBackendType = Literal["noop", "memory", "langsmith"]
RecorderBackendType = Literal["disabled", "memory", "sqlite"]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_float(name: str, default: str) -> Optional[float]:
    value = os.getenv(name, default).strip()
    return float(value) if value else None


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # Local inference
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2:latest"

    # Hosted inference (credentials are excluded from repr)
    groq_api_key: Optional[str] = field(default=None, repr=False)
    groq_model: str = "llama-3.3-70b-versatile"
    groq_base_url: str = GROQ_BASE_URL
    anthropic_api_key: Optional[str] = field(default=None, repr=False)
    openai_api_key: Optional[str] = field(default=None, repr=False)

    # Timeouts and cache
    probe_timeout_s: float = 2.0
    inference_timeout_s: float = 60.0
    availability_ttl_s: float = 60.0

    # Orchestration
    concurrent_tasks: bool = False
    deadline_s: Optional[float] = 120.0

    # Observability
    tracer_backend: TracerBackendType = "noop"
    langsmith_api_key: Optional[str] = field(default=None, repr=False)
    langsmith_project: str = "claim-validation"

    # Persistence
    recorder_backend: RecorderBackendType = "disabled"
    sqlite_db_path: Optional[str] = None

    # CI: route every task to the deterministic stub backend
    use_stub: bool = False

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        An empty or absent API key leaves its family perpetually unavailable.
        DEADLINE_S="" disables the caller deadline.
        """
        return cls(
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            ollama_model=os.getenv("OLLAMA_MODEL", "llama3.2:latest"),
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_model=os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
            groq_base_url=os.getenv("GROQ_BASE_URL", GROQ_BASE_URL),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            probe_timeout_s=float(os.getenv("PROBE_TIMEOUT_S", "2.0")),
            inference_timeout_s=float(os.getenv("INFERENCE_TIMEOUT_S", "60.0")),
            availability_ttl_s=float(os.getenv("AVAILABILITY_TTL_S", "60.0")),
            concurrent_tasks=_env_bool("CONCURRENT_TASKS", "false"),
            deadline_s=_env_float("DEADLINE_S", "120"),
            tracer_backend=os.getenv("TRACER_BACKEND", "noop").strip().lower(),  # type: ignore
            langsmith_api_key=os.getenv("LANGSMITH_API_KEY") or None,
            langsmith_project=os.getenv("LANGSMITH_PROJECT", "claim-validation"),
            recorder_backend=os.getenv("RECORDER_BACKEND", "disabled").strip().lower(),  # type: ignore
            sqlite_db_path=os.getenv("SQLITE_DB_PATH") or None,
            use_stub=_env_bool("USE_STUB", "false"),
        )

    def credentials(self) -> Dict[BackendFamily, Optional[str]]:
        return {
            BackendFamily.GROQ: self.groq_api_key,
            BackendFamily.ANTHROPIC: self.anthropic_api_key,
            BackendFamily.OPENAI: self.openai_api_key,
        }

    def create_backends(self) -> Dict[BackendFamily, ModelBackend]:
        """One adapter per implemented family. OpenAI has none yet."""
        if self.use_stub:
            return {BackendFamily.STUB: StubModelBackend()}
        return {
            BackendFamily.OLLAMA: OllamaModelBackend(
                base_url=self.ollama_base_url, timeout_s=self.inference_timeout_s
            ),
            BackendFamily.GROQ: GroqModelBackend(
                base_url=self.groq_base_url, timeout_s=self.inference_timeout_s
            ),
            BackendFamily.ANTHROPIC: ClaudeModelBackend(timeout_s=self.inference_timeout_s),
        }

    def create_catalog(self) -> ProviderCatalog:
        if self.use_stub:
            return ProviderCatalog.build({}, ladders=stub_ladders())
        return ProviderCatalog.build(
            self.credentials(), ollama_model=self.ollama_model, groq_model=self.groq_model
        )

    def create_availability_cache(self) -> AvailabilityCache:
        return AvailabilityCache(ttl_s=self.availability_ttl_s)

    def create_tracer(self) -> Tracer:
        return create_tracer(self.tracer_backend, self.langsmith_api_key, self.langsmith_project)

    def create_dispatch_client(self, tracer: Optional[Tracer] = None) -> UnifiedDispatchClient:
        return UnifiedDispatchClient(
            catalog=self.create_catalog(),
            backends=self.create_backends(),
            availability=self.create_availability_cache(),
            probe_timeout_s=self.probe_timeout_s,
            call_timeout_s=self.inference_timeout_s,
            tracer=tracer,
        )

    def create_knowledge_base(self, inner: Optional[RuleKnowledgeBase] = None) -> RuleKnowledgeBase:
        """Wrap the given knowledge base (built-in rules by default) in the static fallback."""
        return ResilientKnowledgeBase(inner or StaticRuleKnowledgeBase())

    def create_recorder(self) -> ClaimRecorder:
        if self.recorder_backend == "sqlite":
            return SQLiteClaimRecorder(self.sqlite_db_path)
        if self.recorder_backend == "memory":
            return InMemoryClaimRecorder()
        return DisabledClaimRecorder()

    def create_orchestrator(
        self, client: UnifiedDispatchClient, knowledge: RuleKnowledgeBase, tracer: Optional[Tracer] = None
    ) -> ClaimOrchestrator:
        return ClaimOrchestrator(
            ClaimOrchestrator.default_agents(client, knowledge),
            concurrent=self.concurrent_tasks,
            tracer=tracer,
        )

    def create_service(
        self, orchestrator: ClaimOrchestrator, recorder: ClaimRecorder
    ) -> ValidationService:
        return ValidationService(orchestrator, recorder=recorder, deadline_s=self.deadline_s)


def get_config() -> InfraConfig:
    """Get infrastructure configuration from the environment."""
    return InfraConfig.from_env()
