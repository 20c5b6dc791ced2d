from typing import Any, Dict

from agent.prompting import format_contract_references, format_historical_stats
from agent.state_schema import DomainFacts, Issue
from agent.tasks.base import TaskAgent
from agent.tasks.schemas import ComplianceAnswer
from inference import TaskType

SYSTEM_INSTRUCTION_TEMPLATE = """You are an expert Compliance Validator and fraud detection specialist for crew payroll claims.

Your responsibilities:
1. Check for duplicate claims (same trip, same crew member, same type)
2. Verify crew member is qualified for the claimed work
3. Detect unusual patterns (frequency, amounts, timing)
4. Validate claim is within filing deadline
5. Check for policy violations and fraud indicators
6. Review crew member's recent claim history

Red Flags to Check:
- Multiple claims for the same trip
- Claims significantly above historical averages
- Claims filed outside the filing deadline window
- Crew member not qualified for the work claimed
- Suspicious patterns: many claims in short time, all above average amounts
- Missing supporting documentation for high-value claims
- Claims for cancelled or never-operated flights

{rules}

Output Requirements:
Provide a JSON response with this exact structure:
{{
  "status": "completed" | "flagged" | "error",
  "confidence": 0.0 to 1.0,
  "summary": "brief summary of compliance check",
  "details": ["finding 1", "finding 2", ...],
  "reasoning": "detailed explanation",
  "compliant": true | false,
  "issues": [
    {{
      "severity": "high" | "medium" | "low",
      "title": "Issue title",
      "description": "Issue description",
      "suggestedAction": "What to do about it"
    }}
  ],
  "fraudRisk": "none" | "low" | "medium" | "high",
  "fraudIndicators": ["indicator 1", "indicator 2", ...]
}}

Be thorough but fair. Flag legitimate concerns but don't create false positives."""


class ComplianceAgent(TaskAgent):
    """Fraud, duplicate and policy checks against the compliance rules."""

    task_type = TaskType.COMPLIANCE
    agent_name = "Compliance Validator"
    temperature = 0.2
    max_output_tokens = 2500
    answer_shape = ComplianceAnswer
    error_reasoning = "Failed to complete compliance check due to technical error"

    async def system_instruction(self) -> str:
        return SYSTEM_INSTRUCTION_TEMPLATE.format(rules=await self.knowledge.compliance_rules_text())

    async def focus(self, facts: DomainFacts) -> str:
        sections = await self.knowledge.contract_sections_for(facts.claim.claim_type)
        return (
            "Focus on compliance and fraud detection:\n"
            "- Any red flags or policy violations?\n"
            "- Is this claim within the filing deadline window?\n"
            "- Any unusual patterns in amount or frequency?\n"
            "- Is crew qualified for this work?"
            + format_historical_stats(facts.historical)
            + format_contract_references(sections)
        )

    async def build_payload(self, answer: ComplianceAnswer, facts: DomainFacts) -> Dict[str, Any]:
        issues = [
            Issue(
                severity=issue.severity,
                title=issue.title,
                description=issue.description,
                suggested_action=issue.suggested_action,
                detected_by=TaskType.COMPLIANCE,
            )
            for issue in answer.issues
        ]
        return {
            "compliant": answer.compliant,
            "issues": issues,
            "fraud_risk": answer.fraud_risk,
            "fraud_indicators": list(answer.fraud_indicators),
            "contract_references": await self.knowledge.contract_sections_for(facts.claim.claim_type),
        }
