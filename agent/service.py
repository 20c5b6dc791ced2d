"""
Claim validation service: the inbound boundary.

submit_validation() checks the submission, runs the orchestrator under the
caller deadline and schedules persistence in the background. Apart from
InvalidSubmission it always returns a Verdict.
"""

import asyncio
import logging
from typing import Optional, Set

from agent.decision import RECOMMENDATIONS
from agent.orchestrator import ClaimOrchestrator
from agent.persistence import ClaimRecorder, DisabledClaimRecorder, ValidationRecord
from agent.state_schema import (
    DomainFacts,
    InvalidSubmission,
    TaskResult,
    TaskStatus,
    Verdict,
    VerdictStatus,
)
from inference import TaskType

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_S = 120.0


class ValidationService:
    def __init__(
        self,
        orchestrator: ClaimOrchestrator,
        recorder: Optional[ClaimRecorder] = None,
        deadline_s: Optional[float] = DEFAULT_DEADLINE_S,
    ):
        """
        Args:
            orchestrator: Runs the task agents and the final decision
            recorder: Where outcomes are persisted (dropped by default)
            deadline_s: Advisory caller deadline; None disables it
        """
        self.orchestrator = orchestrator
        self.recorder = recorder or DisabledClaimRecorder()
        self.deadline_s = deadline_s
        self._pending: Set[asyncio.Task] = set()

    async def submit_validation(self, subject_id: str, facts: DomainFacts) -> Verdict:
        """
        Validate one claim.

        Raises:
            InvalidSubmission: missing subject id, missing claim, or a claim
                whose id differs from subject_id
        """
        if not subject_id or not str(subject_id).strip():
            raise InvalidSubmission("subject_id is required")
        if facts is None or facts.claim is None:
            raise InvalidSubmission(f"claim facts are required for {subject_id}")
        if facts.claim.id != subject_id:
            raise InvalidSubmission(
                f"claim id {facts.claim.id} does not match subject_id {subject_id}"
            )

        try:
            verdict = await asyncio.wait_for(
                self.orchestrator.validate(subject_id, facts), timeout=self.deadline_s
            )
        except asyncio.TimeoutError:
            logger.error(f"Validation of {subject_id} exceeded the {self.deadline_s}s deadline")
            verdict = self._deadline_verdict(subject_id, facts)

        self._record_in_background(verdict)
        return verdict

    async def drain(self) -> None:
        """Wait for every scheduled persistence task. Used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _record_in_background(self, verdict: Verdict) -> None:
        task = asyncio.create_task(self._record(ValidationRecord.from_verdict(verdict)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record(self, record: ValidationRecord) -> None:
        try:
            await self.recorder.record(record)
        except Exception as e:
            logger.error(f"Failed to record validation for {record.subject_id}: {e}")

    def _deadline_verdict(self, subject_id: str, facts: DomainFacts) -> Verdict:
        message = f"Validation did not finish within {self.deadline_s}s"
        result = TaskResult(
            task_type=TaskType.ORCHESTRATOR,
            agent_name="Orchestrator",
            status=TaskStatus.ERROR,
            confidence=0.0,
            summary="Orchestration exceeded the caller deadline",
            details=(message,),
            reasoning="The task agents did not complete before the deadline",
            payload={"failure": "deadline_exceeded"},
            duration_seconds=self.deadline_s or 0.0,
        )
        return Verdict(
            subject_id=subject_id,
            overall_status=VerdictStatus.REJECTED,
            confidence=0.0,
            processing_time_seconds=self.deadline_s or 0.0,
            recommendation=RECOMMENDATIONS[VerdictStatus.REJECTED],
            task_results=(result,),
            historical_stats=facts.historical,
        )
