"""
Claim validation state schema and types.

Domain facts flow in, TaskResults and one Verdict flow out. ValidationState
is the single source of truth for one orchestrator run; nodes return partial
updates and never mutate facts.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from inference import TaskType


class InvalidSubmission(ValueError):
    """The submission is rejected before any task agent runs."""


class TaskStatus(str, Enum):
    COMPLETED = "completed"
    FLAGGED = "flagged"
    ERROR = "error"


class VerdictStatus(str, Enum):
    APPROVED = "approved"
    FLAGGED = "flagged"
    REJECTED = "rejected"


# ─────────────────────────────────────────────────────
# DOMAIN FACTS
# ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Claim:
    id: str
    claim_number: str
    crew_member_id: str
    crew_member_name: str
    claim_type: str
    trip_id: str
    flight_number: str
    amount: float
    submitted_date: date
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Claim":
        return cls(
            id=str(_pick(data, "id")),
            claim_number=str(_pick(data, "claim_number", "claimNumber", default="")),
            crew_member_id=str(_pick(data, "crew_member_id", "crewMemberId", default="")),
            crew_member_name=str(_pick(data, "crew_member_name", "crewMemberName", default="")),
            claim_type=str(_pick(data, "claim_type", "type", default="")),
            trip_id=str(_pick(data, "trip_id", "tripId", default="")),
            flight_number=str(_pick(data, "flight_number", "flightNumber", default="")),
            amount=float(_pick(data, "amount", default=0) or 0),
            submitted_date=_parse_date(_pick(data, "submitted_date", "submittedDate"), "submitted_date"),
            description=_pick(data, "description", default=None),
        )


@dataclass(frozen=True)
class Trip:
    id: str
    date: date
    route: str
    flight_numbers: str
    flight_time_hours: float
    credit_hours: float = 0.0
    is_international: bool = False
    aircraft_type: str = ""
    status: str = "completed"
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    layover_city: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Trip":
        return cls(
            id=str(_pick(data, "id")),
            date=_parse_date(_pick(data, "date"), "date"),
            route=str(_pick(data, "route", default="")),
            flight_numbers=str(_pick(data, "flight_numbers", "flightNumbers", default="")),
            flight_time_hours=float(_pick(data, "flight_time_hours", "flightTimeHours", default=0) or 0),
            credit_hours=float(_pick(data, "credit_hours", "creditHours", default=0) or 0),
            is_international=bool(_pick(data, "is_international", "isInternational", default=False)),
            aircraft_type=str(_pick(data, "aircraft_type", "aircraftType", default="")),
            status=str(_pick(data, "status", default="completed")),
            departure_time=_pick(data, "departure_time", "departureTime", default=None),
            arrival_time=_pick(data, "arrival_time", "arrivalTime", default=None),
            layover_city=_pick(data, "layover_city", "layoverCity", default=None),
        )


@dataclass(frozen=True)
class CrewMember:
    id: str
    name: str
    role: str
    base: str
    seniority: int
    qualification: str
    hire_date: Optional[date] = None
    ytd_earnings: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CrewMember":
        hire_date = _pick(data, "hire_date", "hireDate", default=None)
        return cls(
            id=str(_pick(data, "id")),
            name=str(_pick(data, "name", default="")),
            role=str(_pick(data, "role", default="")),
            base=str(_pick(data, "base", default="")),
            seniority=int(_pick(data, "seniority", default=0) or 0),
            qualification=str(_pick(data, "qualification", default="")),
            hire_date=_parse_date(hire_date, "hire_date") if hire_date else None,
            ytd_earnings=float(_pick(data, "ytd_earnings", "ytdEarnings", default=0) or 0),
        )


@dataclass(frozen=True)
class HistoricalStats:
    similar_claims: int
    approval_rate: float
    average_amount: float
    recent_claims: Tuple[Claim, ...] = ()
    common_patterns: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HistoricalStats":
        recent = _pick(data, "recent_claims", "recentClaimsByUser", default=None) or []
        return cls(
            similar_claims=int(_pick(data, "similar_claims", "similarClaims", default=0) or 0),
            approval_rate=float(_pick(data, "approval_rate", "approvalRate", default=0) or 0),
            average_amount=float(_pick(data, "average_amount", "averageAmount", default=0) or 0),
            recent_claims=tuple(Claim.from_dict(c) for c in recent),
            common_patterns=tuple(_pick(data, "common_patterns", "commonPatterns", default=None) or ()),
        )


@dataclass(frozen=True)
class DomainFacts:
    """Everything the task agents may reason over. Only the claim is required."""

    claim: Optional[Claim]
    trip: Optional[Trip] = None
    crew: Optional[CrewMember] = None
    historical: Optional[HistoricalStats] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DomainFacts":
        """
        Build facts from a JSON-style mapping.

        Raises:
            InvalidSubmission: a required field is missing or a value is malformed
        """
        if not isinstance(data, Mapping):
            raise InvalidSubmission("facts must be a JSON object")
        return cls(
            claim=_parse_section("claim", Claim.from_dict, _pick(data, "claim", default=None)),
            trip=_parse_section("trip", Trip.from_dict, _pick(data, "trip", default=None)),
            crew=_parse_section("crew", CrewMember.from_dict, _pick(data, "crew", default=None)),
            historical=_parse_section(
                "historical",
                HistoricalStats.from_dict,
                _pick(data, "historical", "historicalData", default=None),
            ),
        )


# ─────────────────────────────────────────────────────
# RESULTS
# ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ContractReference:
    section: str
    title: str
    text: str
    relevance: float = 1.0


@dataclass(frozen=True)
class Issue:
    severity: str  # high | medium | low
    title: str
    description: str
    suggested_action: Optional[str] = None
    detected_by: Optional[TaskType] = None


@dataclass(frozen=True)
class TaskResult:
    """
    One task agent's assessment.

    Invariants:
    - confidence is 0 when status is error
    - payload keys are task-specific (see agent.tasks)
    """

    task_type: TaskType
    agent_name: str
    status: TaskStatus
    confidence: Optional[float]
    summary: str
    details: Tuple[str, ...] = ()
    reasoning: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    tokens_used: int = 0
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class Verdict:
    """Final, auditable decision for one claim. Never mutated after return."""

    subject_id: str
    overall_status: VerdictStatus
    confidence: float
    processing_time_seconds: float
    recommendation: str
    task_results: Tuple[TaskResult, ...]
    issues: Optional[Tuple[Issue, ...]] = None
    cited_references: Optional[Tuple[ContractReference, ...]] = None
    historical_stats: Optional[HistoricalStats] = None

    @property
    def approved(self) -> bool:
        return self.overall_status == VerdictStatus.APPROVED

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation (enums, dates and decimals flattened)."""
        return _jsonable(asdict(self))


@dataclass
class ValidationState:
    """
    LangGraph state for one orchestrator run.

    Invariants:
    - subject_id and trace_id are immutable once set
    - results only grows, in the configured task order
    - verdict is written only by the decision node
    """

    subject_id: str
    trace_id: str
    facts: DomainFacts
    results: Tuple[TaskResult, ...] = ()
    verdict: Optional[Verdict] = None


def _pick(data: Mapping[str, Any], *keys: str, default: Any = KeyError) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    if default is KeyError:
        raise KeyError(keys[0])
    return default


def _parse_section(name: str, parse, value: Any) -> Any:
    if not value:
        return None
    if not isinstance(value, Mapping):
        raise InvalidSubmission(f"{name} must be a JSON object")
    try:
        return parse(value)
    except InvalidSubmission:
        raise
    except KeyError as e:
        raise InvalidSubmission(f"{name}.{e.args[0]} is required") from e
    except (TypeError, ValueError) as e:
        raise InvalidSubmission(f"{name} is malformed: {e}") from e


def _parse_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError as e:
        raise ValueError(f"{field_name} is not an ISO date: {text!r}") from e


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
