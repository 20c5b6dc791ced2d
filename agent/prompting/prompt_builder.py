"""
Prompt Builder Layer
====================

Assembles the user instruction every task agent sends to the dispatch client.

Responsibilities:
- Renders claim, trip and crew facts into one structured-data block
- Renders historical stats and contract citations as extra context
- Appends the task's focus questions

Invariants:
- Output is a pure function of its inputs (same facts → same string)
- Contract reference text is capped at _MAX_REFERENCE_CHARS per citation
- Absent optional facts produce no section at all, never an empty header
"""

from typing import Iterable, List, Optional

from agent.state_schema import Claim, ContractReference, CrewMember, HistoricalStats, Trip

# ── Budget Constants ──────────────────────────────────────────────────────────
_MAX_REFERENCE_CHARS: int = 200  # per contract citation excerpt


def build_claim_prompt(
    claim: Claim,
    trip: Optional[Trip] = None,
    crew: Optional[CrewMember] = None,
    focus: Optional[str] = None,
) -> str:
    """
    Assemble the user-facing portion of a claim validation prompt.

    The system instruction travels separately (system role); this builds
    only the structured user message.

    Args:
        claim: The claim under validation (required)
        trip: Trip the claim refers to, if known
        crew: Crew member profile, if known
        focus: Task-specific questions and context appended at the end

    Returns:
        Prompt string ready to pass as TaskRequest.user_instruction.
    """
    lines: List[str] = ["Analyze the following pay claim:", "", "CLAIM DETAILS:"]
    lines.append(f"- Claim Number: {claim.claim_number}")
    lines.append(f"- Crew Member: {claim.crew_member_name} ({claim.crew_member_id})")
    lines.append(f"- Type: {claim.claim_type}")
    lines.append(f"- Amount: ${claim.amount:.2f}")
    lines.append(f"- Submitted: {claim.submitted_date.isoformat()}")
    if claim.description:
        lines.append(f"- Description: {claim.description}")

    if trip is not None:
        lines += ["", "TRIP DETAILS:"]
        lines.append(f"- Trip ID: {trip.id}")
        lines.append(f"- Route: {trip.route}")
        lines.append(f"- Flight Numbers: {trip.flight_numbers}")
        lines.append(f"- Date: {trip.date.isoformat()}")
        lines.append(f"- Flight Time: {trip.flight_time_hours} hours")
        lines.append(f"- International: {'Yes' if trip.is_international else 'No'}")
        if trip.layover_city:
            lines.append(f"- Layover: {trip.layover_city}")

    if crew is not None:
        lines += ["", "CREW MEMBER INFO:"]
        lines.append(f"- Role: {crew.role}")
        lines.append(f"- Base: {crew.base}")
        lines.append(f"- Seniority: {crew.seniority} years")
        lines.append(f"- Qualification: {crew.qualification}")

    if focus and focus.strip():
        lines += ["", "ADDITIONAL CONTEXT:", focus.strip()]

    return "\n".join(lines) + "\n"


def format_contract_references(references: Iterable[ContractReference]) -> str:
    """Render citations as a context section, or "" when there are none."""
    references = list(references)
    if not references:
        return ""

    lines = ["", "RELEVANT CBA CONTRACT SECTIONS:"]
    for ref in references:
        lines.append(f"- {ref.section}: {ref.title}")
        excerpt = ref.text[:_MAX_REFERENCE_CHARS]
        if len(ref.text) > _MAX_REFERENCE_CHARS:
            excerpt += "..."
        lines.append(f"  {excerpt}")
    return "\n".join(lines)


def format_historical_stats(stats: Optional[HistoricalStats]) -> str:
    """Render the crew member's claim history, or "" when unknown."""
    if stats is None:
        return ""

    lines = ["", "HISTORICAL DATA FOR THIS CREW MEMBER:"]
    lines.append(f"- Similar claims filed: {stats.similar_claims}")
    lines.append(f"- Historical approval rate: {stats.approval_rate * 100:.1f}%")
    lines.append(f"- Average claim amount: ${stats.average_amount:.2f}")
    if stats.recent_claims:
        lines.append(f"- Recent claims (last 7 days): {len(stats.recent_claims)}")
        lines.append(f"  Types: {', '.join(c.claim_type for c in stats.recent_claims)}")
        lines.append(f"  Amounts: {', '.join(f'${c.amount:g}' for c in stats.recent_claims)}")
    if stats.common_patterns:
        lines.append(f"- Common patterns: {', '.join(stats.common_patterns)}")
    return "\n".join(lines)
