"""
Infrastructure initialization and bootstrap.

Singleton pattern for wiring every component from configuration.
"""

import logging
from typing import Optional

from agent.knowledge import RuleKnowledgeBase
from agent.orchestrator import ClaimOrchestrator
from agent.persistence import ClaimRecorder
from agent.service import ValidationService
from agent.tracing import Tracer
from inference import UnifiedDispatchClient

from .config import InfraConfig, get_config

logger = logging.getLogger(__name__)


class InfraBootstrap:
    """
    Bootstrap infrastructure based on configuration.

    Singleton pattern - single instance per process. The dispatch client's
    availability cache is therefore shared by every validation.
    """

    _instance: Optional["InfraBootstrap"] = None

    def __init__(self, config: Optional[InfraConfig] = None):
        """Initialize bootstrap with configuration."""
        self.config = config or get_config()
        self.tracer = self.config.create_tracer()
        self.dispatch_client = self.config.create_dispatch_client(self.tracer)
        self.knowledge_base = self.config.create_knowledge_base()
        self.recorder = self.config.create_recorder()
        self.orchestrator = self.config.create_orchestrator(
            self.dispatch_client, self.knowledge_base, self.tracer
        )
        self.service = self.config.create_service(self.orchestrator, self.recorder)
        logger.info(f"Infrastructure ready: {self!r}")

    @classmethod
    def get_instance(cls, config: Optional[InfraConfig] = None) -> "InfraBootstrap":
        """
        Get singleton instance.

        Args:
            config: Optional custom configuration (only used first time)
        """
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset singleton (for testing)."""
        cls._instance = None

    def get_dispatch_client(self) -> UnifiedDispatchClient:
        return self.dispatch_client

    def get_knowledge_base(self) -> RuleKnowledgeBase:
        return self.knowledge_base

    def get_recorder(self) -> ClaimRecorder:
        return self.recorder

    def get_orchestrator(self) -> ClaimOrchestrator:
        return self.orchestrator

    def get_service(self) -> ValidationService:
        return self.service

    def get_tracer(self) -> Tracer:
        return self.tracer

    def __repr__(self) -> str:
        """String representation showing configured components. Never shows keys."""
        families = sorted(f.value for f in self.dispatch_client.backends)
        return (
            f"InfraBootstrap(backends={families}, "
            f"concurrent={self.config.concurrent_tasks}, "
            f"tracer={self.config.tracer_backend}, "
            f"recorder={self.config.recorder_backend})"
        )


def bootstrap_infrastructure(config: Optional[InfraConfig] = None) -> InfraBootstrap:
    """
    Bootstrap all infrastructure components.

    Args:
        config: Optional custom configuration

    Returns:
        InfraBootstrap instance with all components initialized
    """
    return InfraBootstrap.get_instance(config)
