"""
Failure-tolerant knowledge base wrapper.

Wraps any RuleKnowledgeBase. A lookup that raises, or that comes back
empty, is answered from the built-in rule summary instead. Task agents
never see a knowledge-base exception through this wrapper.
"""

import logging
from typing import List, Optional

from agent.knowledge.base import ComplianceRule, PremiumPayRate, RuleKnowledgeBase
from agent.knowledge.static import StaticRuleKnowledgeBase
from agent.state_schema import ContractReference

logger = logging.getLogger(__name__)


class ResilientKnowledgeBase(RuleKnowledgeBase):
    def __init__(self, inner: RuleKnowledgeBase, fallback: Optional[RuleKnowledgeBase] = None):
        self.inner = inner
        self.fallback = fallback or StaticRuleKnowledgeBase()

    async def contract_sections_for(self, claim_type: str) -> List[ContractReference]:
        try:
            sections = await self.inner.contract_sections_for(claim_type)
            if sections:
                return sections
        except Exception as e:
            logger.warning(f"Could not fetch contract sections for '{claim_type}': {e}")
        return await self.fallback.contract_sections_for(claim_type)

    async def premium_pay_rate(self, claim_type: str) -> Optional[PremiumPayRate]:
        try:
            rate = await self.inner.premium_pay_rate(claim_type)
            if rate is not None:
                return rate
        except Exception as e:
            logger.warning(f"Could not fetch premium pay rate for '{claim_type}': {e}")
        return await self.fallback.premium_pay_rate(claim_type)

    async def all_premium_pay_rates(self) -> List[PremiumPayRate]:
        try:
            rates = await self.inner.all_premium_pay_rates()
            if rates:
                return rates
            logger.warning("Knowledge base returned no premium pay rates, using built-in rates")
        except Exception as e:
            logger.warning(f"Could not fetch premium pay rates, using built-in rates: {e}")
        return await self.fallback.all_premium_pay_rates()

    async def all_compliance_rules(self) -> List[ComplianceRule]:
        try:
            rules = await self.inner.all_compliance_rules()
            if rules:
                return rules
            logger.warning("Knowledge base returned no compliance rules, using built-in rules")
        except Exception as e:
            logger.warning(f"Could not fetch compliance rules, using built-in rules: {e}")
        return await self.fallback.all_compliance_rules()
