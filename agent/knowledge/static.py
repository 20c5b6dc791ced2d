"""
Built-in rule summary.

In-memory, deterministic, no external dependencies. Serves as the default
knowledge base for CI and as the fallback when the graph store is down.
"""

from typing import Dict, List, Optional, Tuple

from agent.knowledge.base import ComplianceRule, PremiumPayRate, RuleKnowledgeBase
from agent.state_schema import ContractReference

CONTRACT_SECTIONS: Tuple[ContractReference, ...] = (
    ContractReference(
        section="CBA Section 12.4",
        title="International Premium Pay",
        text=(
            "Crew members shall receive $125 per flight segment to destinations outside the "
            "continental United States. This includes Central America, South America, and "
            "Caribbean destinations."
        ),
    ),
    ContractReference(
        section="CBA Section 14.3",
        title="Night Premium",
        text=(
            "Crew members shall receive $5 per hour for flights operating between 2200 and "
            "0600 local time."
        ),
    ),
    ContractReference(
        section="CBA Section 15.2",
        title="Holiday Premium",
        text=(
            "Crew members shall receive 1.5x their hourly rate for work performed on major "
            "holidays: New Year's Day, Memorial Day, Independence Day, Thanksgiving Day and "
            "Christmas Day."
        ),
    ),
    ContractReference(
        section="CBA Section 18.5",
        title="Reserve Call-Out",
        text=(
            "When a reserve crew member is called out, they shall receive a minimum of 4 hours "
            "pay at their regular rate, regardless of actual flight time."
        ),
    ),
    ContractReference(
        section="CBA Section 20.2",
        title="Training Premium",
        text="Crew members shall receive $75 per day for recurrent training days.",
    ),
    ContractReference(
        section="CBA Section 11.3",
        title="Filing Deadline",
        text="All claims must be submitted within 7 days of trip completion.",
    ),
    ContractReference(
        section="CBA Section 11.4",
        title="Duplicate Prevention",
        text="Only one claim per trip per crew member per pay type shall be accepted.",
    ),
    ContractReference(
        section="CBA Section 11.5",
        title="Qualification Requirements",
        text="Crew members must have valid qualification for the work claimed.",
    ),
    ContractReference(
        section="CBA Section 11.6",
        title="Documentation Requirements",
        text="Claims over $100 must include supporting documentation.",
    ),
)

# Claim type → contract sections, most relevant first
CLAIM_TYPE_SECTIONS: Dict[str, Tuple[str, ...]] = {
    "International Premium": ("CBA Section 12.4",),
    "Night Premium": ("CBA Section 14.3",),
    "Holiday Premium": ("CBA Section 15.2",),
    "Reserve Call-Out": ("CBA Section 18.5",),
    "Training Premium": ("CBA Section 20.2",),
}

PREMIUM_PAY_RATES: Tuple[PremiumPayRate, ...] = (
    PremiumPayRate(
        claim_type="International Premium",
        amount=125.0,
        formula="$125 per flight segment",
        conditions="Destinations outside continental US (Central America, South America, Caribbean)",
        applicable_destinations=("GUA", "PTY", "SJO", "BOG", "GYE", "LIM", "SCL", "MEX", "CUN"),
        contract_sections=("CBA Section 12.4",),
    ),
    PremiumPayRate(
        claim_type="Holiday Premium",
        formula="1.5x hourly rate",
        conditions="Work performed on major holidays",
        contract_sections=("CBA Section 15.2",),
    ),
    PremiumPayRate(
        claim_type="Night Premium",
        amount=5.0,
        formula="$5 per hour",
        conditions="Flights operating between 2200-0600 local time",
        contract_sections=("CBA Section 14.3",),
    ),
    PremiumPayRate(
        claim_type="Reserve Call-Out",
        formula="Minimum 4 hours at regular rate",
        conditions="When reserve crew member is called out",
        contract_sections=("CBA Section 18.5",),
    ),
    PremiumPayRate(
        claim_type="Training Premium",
        amount=75.0,
        formula="$75 per day",
        conditions="Recurrent training days",
        contract_sections=("CBA Section 20.2",),
    ),
)

COMPLIANCE_RULES: Tuple[ComplianceRule, ...] = (
    ComplianceRule(
        rule_type="filing_deadline",
        description="Claims must be submitted within 7 days of trip completion",
        deadline_days=7,
        red_flags=("Filed after deadline", "No extenuating circumstances documented"),
        contract_sections=("CBA Section 11.3",),
    ),
    ComplianceRule(
        rule_type="duplicate_prevention",
        description="Only one claim per trip per crew member per pay type",
        red_flags=("Multiple claims for same trip", "Same pay type claimed twice"),
        contract_sections=("CBA Section 11.4",),
    ),
    ComplianceRule(
        rule_type="qualification_requirement",
        description="Crew must have valid qualification for claimed work",
        qualification_required=True,
        red_flags=("International premium without international qualification",),
        contract_sections=("CBA Section 11.5",),
    ),
    ComplianceRule(
        rule_type="documentation_requirement",
        description="Claims over $100 require supporting documentation",
        required_documentation="Receipts, flight records, or relevant documents",
        red_flags=("High-value claim without documentation",),
        contract_sections=("CBA Section 11.6",),
    ),
)


class StaticRuleKnowledgeBase(RuleKnowledgeBase):
    """
    Deterministic knowledge base backed by the built-in rule summary.

    Claim type lookups are case-insensitive.
    """

    def __init__(
        self,
        sections: Tuple[ContractReference, ...] = CONTRACT_SECTIONS,
        claim_type_sections: Optional[Dict[str, Tuple[str, ...]]] = None,
        rates: Tuple[PremiumPayRate, ...] = PREMIUM_PAY_RATES,
        rules: Tuple[ComplianceRule, ...] = COMPLIANCE_RULES,
    ):
        self._sections = {ref.section: ref for ref in sections}
        self._claim_type_sections = {
            k.lower(): v for k, v in (claim_type_sections or CLAIM_TYPE_SECTIONS).items()
        }
        self._rates = {rate.claim_type.lower(): rate for rate in rates}
        self._rules = list(rules)

    async def contract_sections_for(self, claim_type: str) -> List[ContractReference]:
        refs = self._claim_type_sections.get((claim_type or "").lower(), ())
        found = [self._sections[ref] for ref in refs if ref in self._sections]
        return sorted(found, key=lambda ref: ref.relevance, reverse=True)

    async def premium_pay_rate(self, claim_type: str) -> Optional[PremiumPayRate]:
        return self._rates.get((claim_type or "").lower())

    async def all_premium_pay_rates(self) -> List[PremiumPayRate]:
        return list(self._rates.values())

    async def all_compliance_rules(self) -> List[ComplianceRule]:
        return list(self._rules)
