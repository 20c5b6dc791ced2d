"""
Abstract claim recorder interface.

Persistence is a service, not state. The validation service depends only on
this interface and schedules record() in the background, so a slow or broken
store never delays or changes a verdict.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from agent.state_schema import Verdict


@dataclass(frozen=True)
class ValidationRecord:
    subject_id: str
    approved: bool
    explanation: str
    primary_citation: Optional[str] = None

    @classmethod
    def from_verdict(cls, verdict: Verdict) -> "ValidationRecord":
        citation = verdict.cited_references[0].section if verdict.cited_references else None
        return cls(
            subject_id=verdict.subject_id,
            approved=verdict.approved,
            explanation=verdict.recommendation,
            primary_citation=citation,
        )


class ClaimRecorder(ABC):
    @abstractmethod
    async def record(self, record: ValidationRecord) -> None:
        """
        Store the outcome of one validation.

        May raise; the caller logs the failure and moves on.
        """
        raise NotImplementedError
