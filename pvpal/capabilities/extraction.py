"""Structured field extraction through the language model."""

import json
import re
from typing import Any

from ..errors import ExtractionError, UpstreamUnavailableError
from ..llm import ILLMProvider
from ..logging_config import get_logger

logger = get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

EXTRACTION_TEMPERATURE = 0.3


def parse_json_object(text: str) -> dict[str, Any]:
    """First JSON object embedded in ``text``."""
    match = _JSON_OBJECT.search(text)
    if not match:
        raise ExtractionError(f"No JSON object in model output: {text[:100]!r}")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Malformed JSON in model output: {e}") from e
    if not isinstance(parsed, dict):
        raise ExtractionError("Model output is not a JSON object")
    return parsed


async def extract_fields(
    llm: ILLMProvider | None,
    system: str,
    prompt: str,
    max_tokens: int = 400,
) -> dict[str, Any]:
    """Ask the model for a JSON object and keep its non-null fields.

    Returns an empty dict when no model is configured or the model is
    unreachable or unintelligible; callers then rely on keyword extraction.
    """
    if llm is None:
        return {}

    try:
        raw = await llm.complete(
            messages=[{"role": "user", "content": prompt}],
            system=system,
            max_tokens=max_tokens,
            temperature=EXTRACTION_TEMPERATURE,
        )
        parsed = parse_json_object(raw)
    except (UpstreamUnavailableError, ExtractionError) as e:
        logger.warning(f"Field extraction failed, using keyword extraction: {e}")
        return {}

    fields = {}
    for name, value in parsed.items():
        text = as_text(value)
        if text:
            fields[name] = text
    return fields


def as_text(value: Any) -> str | None:
    """Scalar model output as a stripped string; nested values are dropped."""
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None
