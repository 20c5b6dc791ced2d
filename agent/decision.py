"""
Final decision.

Aggregates task results into one Verdict. Precedence:
  1. any error result            → rejected
  2. any flagged result, or
     mean confidence < 0.7       → flagged
  3. otherwise                   → approved

Pure function of its inputs; no I/O, no clock.
"""

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from agent.state_schema import (
    ContractReference,
    HistoricalStats,
    Issue,
    TaskResult,
    TaskStatus,
    Verdict,
    VerdictStatus,
)
from inference import TaskType

logger = logging.getLogger(__name__)

APPROVAL_THRESHOLD = 0.7
DEFAULT_CONFIDENCE = 0.5

RECOMMENDATIONS = {
    VerdictStatus.APPROVED: "APPROVE - All validation checks passed",
    VerdictStatus.FLAGGED: "RECOMMEND: Request additional information",
    VerdictStatus.REJECTED: "REJECT - Validation failed",
}

PROVIDERS_UNAVAILABLE = "REJECT - All LLM providers unavailable"


def overall_confidence(results: Iterable[TaskResult]) -> float:
    """Mean of the defined confidences, DEFAULT_CONFIDENCE when none, clamped to [0, 1]."""
    confidences = [r.confidence for r in results if r.confidence is not None]
    if not confidences:
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, sum(confidences) / len(confidences)))


def overall_status(results: Sequence[TaskResult], confidence: float) -> VerdictStatus:
    if any(r.status == TaskStatus.ERROR for r in results):
        return VerdictStatus.REJECTED
    if any(r.status == TaskStatus.FLAGGED for r in results) or confidence < APPROVAL_THRESHOLD:
        return VerdictStatus.FLAGGED
    return VerdictStatus.APPROVED


def collect_issues(results: Iterable[TaskResult]) -> List[Issue]:
    """Every payload's issues in result order, each stamped with its detecting task."""
    issues = []
    for result in results:
        for issue in result.payload.get("issues") or ():
            if issue.detected_by is None:
                issue = replace(issue, detected_by=result.task_type)
            issues.append(issue)
    return issues


def cited_references(results: Iterable[TaskResult]) -> List[ContractReference]:
    """Citations come from the premium pay task only."""
    for result in results:
        if result.task_type == TaskType.PREMIUM_PAY:
            return list(result.payload.get("contract_references") or ())
    return []


def recommendation_for(status: VerdictStatus, results: Sequence[TaskResult]) -> str:
    exhausted = [r for r in results if r.payload.get("failure") == "providers_exhausted"]
    if results and len(exhausted) == len(results):
        remediation = exhausted[0].payload.get("remediation") or []
        return ". ".join([PROVIDERS_UNAVAILABLE] + list(remediation))
    return RECOMMENDATIONS[status]


def decide(
    subject_id: str,
    task_results: Sequence[TaskResult],
    historical_stats: Optional[HistoricalStats] = None,
) -> Verdict:
    """
    Aggregate task results into a Verdict.

    Args:
        subject_id: Claim the results belong to
        task_results: Results in the configured task order
        historical_stats: Echoed onto the verdict for reviewers

    Returns:
        Verdict
    """
    results = tuple(task_results)
    confidence = overall_confidence(results)
    status = overall_status(results, confidence)
    issues = collect_issues(results)
    references = cited_references(results)

    verdict = Verdict(
        subject_id=subject_id,
        overall_status=status,
        confidence=confidence,
        processing_time_seconds=sum(r.duration_seconds for r in results),
        recommendation=recommendation_for(status, results),
        task_results=results,
        issues=tuple(issues) if issues else None,
        cited_references=tuple(references) if references else None,
        historical_stats=historical_stats,
    )

    logger.info(f"Decision for {subject_id}: {status.value.upper()} (confidence {confidence * 100:.1f}%)")
    return verdict
