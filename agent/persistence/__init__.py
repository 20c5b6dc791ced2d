"""
Persistence exports.
"""

from agent.persistence.base import ClaimRecorder, ValidationRecord
from agent.persistence.stub import InMemoryClaimRecorder, DisabledClaimRecorder
from agent.persistence.sqlite import SQLiteClaimRecorder

__all__ = [
    "ClaimRecorder",
    "ValidationRecord",
    "InMemoryClaimRecorder",
    "DisabledClaimRecorder",
    "SQLiteClaimRecorder",
]
