"""Pytest configuration and fixtures."""

import json
import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agent.state_schema import Claim, CrewMember, DomainFacts, HistoricalStats, Trip  # noqa: E402
from inference import TaskType  # noqa: E402


class FakeClock:
    """Monotonic clock driven by the test."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_claim():
    return Claim(
        id="claim-001",
        claim_number="CLM-2024-0001",
        crew_member_id="crew-042",
        crew_member_name="Alex Rivera",
        claim_type="International Premium",
        trip_id="trip-777",
        flight_number="CM 412",
        amount=125.0,
        submitted_date=date(2024, 3, 12),
        description="International segment to PTY",
    )


@pytest.fixture
def sample_facts(sample_claim):
    return DomainFacts(
        claim=sample_claim,
        trip=Trip(
            id="trip-777",
            date=date(2024, 3, 10),
            route="LAX-PTY",
            flight_numbers="CM 412",
            flight_time_hours=5.8,
            credit_hours=6.0,
            is_international=True,
            aircraft_type="737-800",
        ),
        crew=CrewMember(
            id="crew-042",
            name="Alex Rivera",
            role="First Officer",
            base="LAX",
            seniority=6,
            qualification="International",
        ),
        historical=HistoricalStats(similar_claims=4, approval_rate=0.75, average_amount=118.0),
    )


def _answer(task_type: TaskType, **overrides) -> str:
    base = {
        "status": "completed",
        "confidence": 0.9,
        "summary": f"{task_type.value} ok",
        "details": ["checked"],
        "reasoning": "scripted",
    }
    if task_type == TaskType.FLIGHT_TIME:
        base.update({"validated": True, "discrepancies": []})
    elif task_type == TaskType.PREMIUM_PAY:
        base.update(
            {
                "calculatedAmount": 125.0,
                "claimedAmount": 125.0,
                "amountCorrect": True,
                "applicableSections": ["CBA Section 12.4"],
                "contractReferences": [],
            }
        )
    elif task_type == TaskType.COMPLIANCE:
        base.update({"compliant": True, "issues": [], "fraudRisk": "none", "fraudIndicators": []})
    base.update(overrides)
    return json.dumps(base)


@pytest.fixture
def make_answer():
    """Build a JSON model answer for a task type, with field overrides."""
    return _answer
