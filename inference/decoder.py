"""
Structured-output decoder.

Pulls one JSON payload out of a model's text answer and validates it against a
pydantic model. A fenced ```json block is unwrapped when present; otherwise the
text is parsed verbatim. Anything that does not parse or validate raises
DecodeFailure; nothing is ever coerced to a default.
"""

import json
import re
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import DecodeFailure

T = TypeVar("T", bound=BaseModel)

# Appended to system instructions of every task that expects structured output
JSON_ONLY_SUFFIX = (
    "\n\nIMPORTANT: Respond ONLY with valid JSON. "
    "Do not include any explanatory text before or after the JSON."
)

# One fenced block, optionally labelled json, tolerant of CRLF line endings
_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n(.*?)\r?\n?```", re.DOTALL)


def extract_json_text(raw_text: str) -> str:
    """Return the fenced block's body if one exists, else the raw text stripped."""
    match = _FENCE_RE.search(raw_text or "")
    if match:
        return match.group(1).strip()
    return (raw_text or "").strip()


def decode(raw_text: str, shape: Type[T]) -> T:
    """
    Decode raw model text into `shape`.

    Raises:
        DecodeFailure: when the text is not JSON or does not match the shape
    """
    body = extract_json_text(raw_text)
    if not body:
        raise DecodeFailure("LLM response was empty", raw_text=raw_text or "")

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise DecodeFailure(f"LLM response was not valid JSON: {e.msg}", raw_text=raw_text) from e

    try:
        return shape.model_validate(data)
    except ValidationError as e:
        raise DecodeFailure(
            f"LLM response did not match {shape.__name__}: {e.error_count()} validation error(s)",
            raw_text=raw_text,
        ) from e
