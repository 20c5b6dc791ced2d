"""
Task agents.

Each agent owns one reasoning task and always returns a TaskResult.
"""

from agent.tasks.base import TaskAgent
from agent.tasks.flight_time import FlightTimeAgent
from agent.tasks.premium_pay import PremiumPayAgent, merge_references
from agent.tasks.compliance import ComplianceAgent

__all__ = [
    "TaskAgent",
    "FlightTimeAgent",
    "PremiumPayAgent",
    "ComplianceAgent",
    "merge_references",
]
