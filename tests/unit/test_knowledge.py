"""Tests for the rule knowledge base and its failure-tolerant wrapper."""

import pytest

from agent.knowledge import ResilientKnowledgeBase, RuleKnowledgeBase, StaticRuleKnowledgeBase
from agent.knowledge.base import PremiumPayRate


class BrokenKnowledgeBase(RuleKnowledgeBase):
    """Graph store that is down."""

    async def contract_sections_for(self, claim_type):
        raise ConnectionError("neo4j unreachable")

    async def premium_pay_rate(self, claim_type):
        raise ConnectionError("neo4j unreachable")

    async def all_premium_pay_rates(self):
        raise ConnectionError("neo4j unreachable")

    async def all_compliance_rules(self):
        raise ConnectionError("neo4j unreachable")


class EmptyKnowledgeBase(RuleKnowledgeBase):
    async def contract_sections_for(self, claim_type):
        return []

    async def premium_pay_rate(self, claim_type):
        return None

    async def all_premium_pay_rates(self):
        return []

    async def all_compliance_rules(self):
        return []


class TestStaticKnowledgeBase:
    @pytest.mark.asyncio
    async def test_sections_for_claim_type_case_insensitive(self):
        kb = StaticRuleKnowledgeBase()

        sections = await kb.contract_sections_for("international premium")

        assert [s.section for s in sections] == ["CBA Section 12.4"]

    @pytest.mark.asyncio
    async def test_unknown_claim_type(self):
        kb = StaticRuleKnowledgeBase()

        assert await kb.contract_sections_for("Per Diem") == []
        assert await kb.premium_pay_rate("Per Diem") is None

    @pytest.mark.asyncio
    async def test_rates(self):
        rate = await StaticRuleKnowledgeBase().premium_pay_rate("Training Premium")

        assert rate.amount == 75.0
        assert rate.contract_sections == ("CBA Section 20.2",)

    @pytest.mark.asyncio
    async def test_compliance_rules_text(self):
        text = await StaticRuleKnowledgeBase().compliance_rules_text()

        assert text.startswith("CBA Compliance Rules:")
        assert "Deadline: 7 days" in text
        assert "Qualification Required: Yes" in text


class TestResilientKnowledgeBase:
    @pytest.mark.asyncio
    async def test_failing_store_falls_back(self):
        kb = ResilientKnowledgeBase(BrokenKnowledgeBase())

        sections = await kb.contract_sections_for("Night Premium")
        rate = await kb.premium_pay_rate("Night Premium")
        rules = await kb.all_compliance_rules()

        assert sections[0].section == "CBA Section 14.3"
        assert rate.amount == 5.0
        assert len(rules) == 4

    @pytest.mark.asyncio
    async def test_empty_store_falls_back(self):
        kb = ResilientKnowledgeBase(EmptyKnowledgeBase())

        assert (await kb.premium_pay_rates_text()).count("\n- ") == 5

    @pytest.mark.asyncio
    async def test_store_answer_is_preferred(self):
        custom = PremiumPayRate(claim_type="Night Premium", formula="$6 per hour", amount=6.0)
        inner = StaticRuleKnowledgeBase(rates=(custom,))
        kb = ResilientKnowledgeBase(inner)

        rate = await kb.premium_pay_rate("Night Premium")

        assert rate.amount == 6.0
