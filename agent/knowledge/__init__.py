"""
Knowledge base exports.

Clean interface for task agents to import rule lookups.
"""

from agent.knowledge.base import ComplianceRule, PremiumPayRate, RuleKnowledgeBase
from agent.knowledge.static import StaticRuleKnowledgeBase
from agent.knowledge.resilient import ResilientKnowledgeBase

__all__ = [
    "ComplianceRule",
    "PremiumPayRate",
    "RuleKnowledgeBase",
    "StaticRuleKnowledgeBase",
    "ResilientKnowledgeBase",
]
