"""
Abstract rule knowledge base.

The knowledge base is a service, not state. Task agents depend only on this
interface, never on the graph store behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from agent.state_schema import ContractReference


@dataclass(frozen=True)
class PremiumPayRate:
    claim_type: str
    formula: str
    amount: Optional[float] = None  # None for multiplier/minimum-hours rates
    conditions: Optional[str] = None
    applicable_destinations: Tuple[str, ...] = ()
    contract_sections: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ComplianceRule:
    rule_type: str
    description: str
    deadline_days: Optional[int] = None
    required_documentation: Optional[str] = None
    qualification_required: bool = False
    red_flags: Tuple[str, ...] = ()
    contract_sections: Tuple[str, ...] = ()


class RuleKnowledgeBase(ABC):
    """
    Abstract knowledge-base boundary.

    Lookups may raise on backend failure; wrap in ResilientKnowledgeBase
    to degrade to the built-in rules instead.
    """

    @abstractmethod
    async def contract_sections_for(self, claim_type: str) -> List[ContractReference]:
        """Contract sections that apply to `claim_type`, most relevant first."""
        raise NotImplementedError

    @abstractmethod
    async def premium_pay_rate(self, claim_type: str) -> Optional[PremiumPayRate]:
        """The premium pay rate for `claim_type`, or None when there is none."""
        raise NotImplementedError

    @abstractmethod
    async def all_premium_pay_rates(self) -> List[PremiumPayRate]:
        raise NotImplementedError

    @abstractmethod
    async def all_compliance_rules(self) -> List[ComplianceRule]:
        raise NotImplementedError

    async def premium_pay_rates_text(self) -> str:
        """Prose rendering of every premium pay rate for a system instruction."""
        return render_premium_pay_rates(await self.all_premium_pay_rates())

    async def compliance_rules_text(self) -> str:
        """Prose rendering of every compliance rule for a system instruction."""
        return render_compliance_rules(await self.all_compliance_rules())


def render_premium_pay_rate(rate: PremiumPayRate) -> str:
    lines = [f"- Type: {rate.claim_type}"]
    if rate.amount is not None:
        lines.append(f"- Amount: ${rate.amount:.2f}")
    lines.append(f"- Formula: {rate.formula}")
    if rate.conditions:
        lines.append(f"- Conditions: {rate.conditions}")
    if rate.applicable_destinations:
        lines.append(f"- Applicable Destinations: {', '.join(rate.applicable_destinations)}")
    if rate.contract_sections:
        lines.append(f"- Contract Sections: {', '.join(rate.contract_sections)}")
    return "\n".join(lines)


def render_premium_pay_rates(rates: List[PremiumPayRate]) -> str:
    lines = ["CBA Premium Pay Rates:"]
    for rate in rates:
        lines.append(f"- {rate.claim_type}: {rate.formula}")
        if rate.conditions:
            lines.append(f"  - Conditions: {rate.conditions}")
        if rate.applicable_destinations:
            lines.append(f"  - Applies to: {', '.join(rate.applicable_destinations)}")
        if rate.contract_sections:
            lines.append(f"  - Contract Sections: {', '.join(rate.contract_sections)}")
    return "\n".join(lines)


def render_compliance_rules(rules: List[ComplianceRule]) -> str:
    lines = ["CBA Compliance Rules:"]
    for rule in rules:
        lines.append(f"- {rule.rule_type}: {rule.description}")
        if rule.deadline_days:
            lines.append(f"  Deadline: {rule.deadline_days} days")
        if rule.required_documentation:
            lines.append(f"  Required Documentation: {rule.required_documentation}")
        if rule.qualification_required:
            lines.append("  Qualification Required: Yes")
        if rule.red_flags:
            lines.append(f"  Red Flags: {', '.join(rule.red_flags)}")
        if rule.contract_sections:
            lines.append(f"  Contract References: {', '.join(rule.contract_sections)}")
    return "\n".join(lines)
