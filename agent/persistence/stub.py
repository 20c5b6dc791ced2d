"""
Stub claim recorders for testing and CI.

In-memory, deterministic, no external dependencies.
"""

from typing import List

from agent.persistence.base import ClaimRecorder, ValidationRecord


class InMemoryClaimRecorder(ClaimRecorder):
    """Keeps every record in a list, in arrival order."""

    def __init__(self):
        self.records: List[ValidationRecord] = []

    async def record(self, record: ValidationRecord) -> None:
        self.records.append(record)


class DisabledClaimRecorder(ClaimRecorder):
    """Recorder used when persistence is switched off. Drops everything."""

    async def record(self, record: ValidationRecord) -> None:
        return None
