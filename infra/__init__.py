"""
Infrastructure module exports.

Configuration and bootstrap for every component.
"""

from .config import InfraConfig, get_config, TracerBackendType, RecorderBackendType
from .bootstrap import InfraBootstrap, bootstrap_infrastructure

__all__ = [
    "InfraConfig",
    "get_config",
    "TracerBackendType",
    "RecorderBackendType",
    "InfraBootstrap",
    "bootstrap_infrastructure",
]
