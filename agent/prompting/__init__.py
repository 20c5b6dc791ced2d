"""
Prompt Builder layer for the claim validator.

Exports the deterministic claim prompt assembler and its context formatters.
"""

from .prompt_builder import build_claim_prompt, format_contract_references, format_historical_stats

__all__ = ["build_claim_prompt", "format_contract_references", "format_historical_stats"]
