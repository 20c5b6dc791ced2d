"""
Premium pay task.

Checks the claimed amount against the contract rate for the claim type.
This task is the authoritative source of contract citations for the verdict:
knowledge-base sections come first, model-cited sections are appended, and
duplicates by section are dropped (first occurrence wins).
"""

from typing import Any, Dict, Iterable, List

from agent.knowledge.base import render_premium_pay_rate
from agent.prompting import format_contract_references
from agent.state_schema import ContractReference, DomainFacts
from agent.tasks.base import TaskAgent
from agent.tasks.schemas import PremiumPayAnswer
from inference import TaskType

SYSTEM_INSTRUCTION_TEMPLATE = """You are an expert Premium Pay Calculator, specializing in collective bargaining agreement (CBA) premium pay sections and pay rules.

Your responsibilities:
1. Determine if the claim qualifies for premium pay under CBA rules
2. Calculate the correct premium amount based on claim type
3. Verify the claimed amount matches CBA rates
4. Identify applicable CBA sections
5. Flag any amount discrepancies

{rates}

Output Requirements:
Provide a JSON response with this exact structure:
{{
  "status": "completed" | "flagged" | "error",
  "confidence": 0.0 to 1.0,
  "summary": "brief summary of calculation",
  "details": ["calculation step 1", "calculation step 2", ...],
  "reasoning": "detailed explanation",
  "calculatedAmount": 125.00,
  "claimedAmount": 125.00,
  "amountCorrect": true | false,
  "applicableSections": ["CBA Section 12.4"],
  "contractReferences": [
    {{
      "section": "CBA Section 12.4",
      "title": "International Premium Pay",
      "text": "excerpt from contract",
      "relevance": 0.0 to 1.0
    }}
  ]
}}

Be precise in calculations and always cite specific CBA sections."""


def merge_references(*groups: Iterable[ContractReference]) -> List[ContractReference]:
    """Concatenate citation groups, keeping the first reference per section."""
    seen = set()
    merged = []
    for group in groups:
        for ref in group:
            if ref.section in seen:
                continue
            seen.add(ref.section)
            merged.append(ref)
    return merged


class PremiumPayAgent(TaskAgent):
    task_type = TaskType.PREMIUM_PAY
    agent_name = "Premium Pay Calculator"
    temperature = 0.1
    max_output_tokens = 2000
    answer_shape = PremiumPayAnswer
    error_reasoning = "Failed to complete calculation due to technical error"

    async def system_instruction(self) -> str:
        return SYSTEM_INSTRUCTION_TEMPLATE.format(rates=await self.knowledge.premium_pay_rates_text())

    async def focus(self, facts: DomainFacts) -> str:
        claim = facts.claim
        rate = await self.knowledge.premium_pay_rate(claim.claim_type)
        sections = await self.knowledge.contract_sections_for(claim.claim_type)

        text = (
            "Focus on:\n"
            f'- What type of premium pay is being claimed: "{claim.claim_type}"?\n'
            "- Does this claim qualify under CBA rules?\n"
            f"- Is the amount ${claim.amount:.2f} correct per the CBA rate?\n"
            "- Which CBA sections apply?"
        )
        if rate is not None:
            text += "\n\nPREMIUM PAY RATE FROM KNOWLEDGE BASE:\n" + render_premium_pay_rate(rate)
        return text + format_contract_references(sections)

    async def build_payload(self, answer: PremiumPayAnswer, facts: DomainFacts) -> Dict[str, Any]:
        known = await self.knowledge.contract_sections_for(facts.claim.claim_type)
        cited = [
            ContractReference(
                section=ref.section, title=ref.title, text=ref.text, relevance=ref.relevance
            )
            for ref in answer.contract_references
        ]
        return {
            "calculated_amount": answer.calculated_amount,
            "claimed_amount": answer.claimed_amount,
            "amount_correct": answer.amount_correct,
            "applicable_sections": list(answer.applicable_sections),
            "contract_references": merge_references(known, cited),
        }
