from typing import Any, Dict

from agent.state_schema import DomainFacts
from agent.tasks.base import TaskAgent
from agent.tasks.schemas import FlightTimeAnswer
from inference import TaskType

SYSTEM_INSTRUCTION = """You are an expert Flight Time Calculator, specializing in validating flight time calculations and trip data according to FAA regulations and the collective bargaining agreement (CBA).

Your responsibilities:
1. Verify that the trip exists and matches the claim
2. Validate flight time calculations are accurate for the route
3. Check that the trip date matches the claim submission timeline
4. Identify any discrepancies between claimed and actual flight times
5. Verify the flight is properly logged and completed

CBA Context:
- Flight time is measured from blocks-off to blocks-on
- Credit hours may differ from actual flight hours per CBA Section 7.2

Output Requirements:
Provide a JSON response with this exact structure:
{
  "status": "completed" | "flagged" | "error",
  "confidence": 0.0 to 1.0,
  "summary": "brief summary of findings",
  "details": ["specific finding 1", "specific finding 2", ...],
  "reasoning": "detailed explanation of your analysis",
  "validated": true | false,
  "discrepancies": ["any issues found"]
}"""


class FlightTimeAgent(TaskAgent):
    """Checks the claim against the trip record and its flight times."""

    task_type = TaskType.FLIGHT_TIME
    agent_name = "Flight Time Calculator"
    temperature = 0.1
    max_output_tokens = 1500
    answer_shape = FlightTimeAnswer

    async def system_instruction(self) -> str:
        return SYSTEM_INSTRUCTION

    async def focus(self, facts: DomainFacts) -> str:
        claim = facts.claim
        return (
            "Focus on validating:\n"
            f"- Does the trip {claim.trip_id} exist and match flight {claim.flight_number}?\n"
            "- Are the flight times accurate for this route?\n"
            "- Does the trip date align with the claim submission?"
        )

    async def build_payload(self, answer: FlightTimeAnswer, facts: DomainFacts) -> Dict[str, Any]:
        return {
            "validated": answer.validated,
            "discrepancies": list(answer.discrepancies),
        }
