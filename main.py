"""
Claim validator entry point.

Validates one claim described by a JSON facts file and prints the verdict.

Run: python main.py claim.json [--concurrent] [--stub] [--json]

The facts file holds {"claim": {...}, "trip": {...}, "crew": {...},
"historical": {...}}; only "claim" is required.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from agent.state_schema import DomainFacts, InvalidSubmission, Verdict
from config import Config
from infra import InfraBootstrap, get_config

# Setup logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def load_facts(path: Path) -> DomainFacts:
    with path.open(encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidSubmission(f"{path} is not valid JSON: {e}") from e
    return DomainFacts.from_dict(data)


def render_verdict(verdict: Verdict) -> str:
    lines = [
        f"Claim:          {verdict.subject_id}",
        f"Decision:       {verdict.overall_status.value.upper()}",
        f"Confidence:     {verdict.confidence * 100:.1f}%",
        f"Processing:     {verdict.processing_time_seconds:.2f}s",
        f"Recommendation: {verdict.recommendation}",
        "",
    ]
    for result in verdict.task_results:
        confidence = f"{result.confidence:.2f}" if result.confidence is not None else "n/a"
        lines.append(f"  [{result.status.value:>9}] {result.agent_name} ({confidence}): {result.summary}")
    if verdict.issues:
        lines.append("")
        lines.append("Issues:")
        for issue in verdict.issues:
            lines.append(f"  - ({issue.severity}) {issue.title}: {issue.description}")
    if verdict.cited_references:
        lines.append("")
        lines.append("Contract references:")
        for ref in verdict.cited_references:
            lines.append(f"  - {ref.section}: {ref.title}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    config = get_config()
    if args.stub:
        config.use_stub = True
    if args.concurrent:
        config.concurrent_tasks = True
    if not config.use_stub:
        Config.validate()

    bootstrap = InfraBootstrap.get_instance(config)
    service = bootstrap.get_service()

    try:
        facts = load_facts(args.facts)
        subject_id = args.subject_id or (facts.claim.id if facts.claim else "")
        verdict = await service.submit_validation(subject_id, facts)
    except InvalidSubmission as e:
        logger.error(f"Invalid submission: {e}")
        return 2
    finally:
        await service.drain()

    if args.json:
        print(json.dumps(verdict.to_dict(), indent=2))
    else:
        print(render_verdict(verdict))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate a crew pay claim")
    parser.add_argument("facts", type=Path, help="Path to a JSON facts file")
    parser.add_argument("--subject-id", help="Claim id (defaults to claim.id in the facts file)")
    parser.add_argument("--concurrent", action="store_true", help="Run task agents concurrently")
    parser.add_argument("--stub", action="store_true", help="Use the deterministic stub backend")
    parser.add_argument("--json", action="store_true", help="Print the verdict as JSON")
    args = parser.parse_args()

    logger.info("=" * 60)
    logger.info("Claim validator starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info("=" * 60)

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
