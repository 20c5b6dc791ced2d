"""
Expected model answer shapes, one per task.

Models answer in camelCase JSON; fields are declared snake_case with
camelCase aliases and accept either spelling.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ModelAnswer(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContractReferenceAnswer(_ModelAnswer):
    section: str
    title: str = ""
    text: str = ""
    relevance: float = Field(default=1.0, ge=0.0, le=1.0)


class IssueAnswer(_ModelAnswer):
    severity: Literal["high", "medium", "low"]
    title: str
    description: str = ""
    suggested_action: Optional[str] = None


class TaskAnswer(_ModelAnswer):
    """Fields every task answer carries."""

    status: Literal["completed", "flagged", "error"]
    confidence: float = Field(..., ge=0.0, le=1.0)
    summary: str
    details: List[str] = Field(default_factory=list)
    reasoning: str = ""


class FlightTimeAnswer(TaskAnswer):
    validated: bool
    discrepancies: List[str] = Field(default_factory=list)


class PremiumPayAnswer(TaskAnswer):
    calculated_amount: float
    claimed_amount: float
    amount_correct: bool
    applicable_sections: List[str] = Field(default_factory=list)
    contract_references: List[ContractReferenceAnswer] = Field(default_factory=list)


class ComplianceAnswer(TaskAnswer):
    compliant: bool
    issues: List[IssueAnswer] = Field(default_factory=list)
    fraud_risk: Literal["none", "low", "medium", "high"] = "none"
    fraud_indicators: List[str] = Field(default_factory=list)
