# plan.py
# Plan normalization: reduce free-form model output to an ordered step list.
#
# The planner is asked for pure JSON but routinely answers with prose,
# markdown fences, or a JSON string containing the JSON array. Every one of
# those shapes must still yield the same list of steps.

import json
import re
from typing import Any

from pydantic import ValidationError

from plan_runner.errors import PlanParseError
from plan_runner.models import Step

_ARRAY_SPAN = re.compile(r"\[.*\]", re.DOTALL)


def _loads(text: str) -> Any:
    # strict=False tolerates literal newlines inside strings
    return json.loads(text, strict=False)


def _extract_array(text: str) -> list | None:
    """Return the first JSON array recoverable from `text`, or None."""
    try:
        parsed = _loads(text)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, list):
        return parsed

    # Double-encoded: the model returned a JSON string holding the array.
    if isinstance(parsed, str) and parsed.strip().startswith("["):
        try:
            inner = _loads(parsed)
        except json.JSONDecodeError:
            inner = None
        if isinstance(inner, list):
            return inner

    match = _ARRAY_SPAN.search(text)
    if match:
        try:
            embedded = _loads(match.group(0))
        except json.JSONDecodeError:
            return None
        if isinstance(embedded, list):
            return embedded

    return None


def normalize_plan(raw_text: str) -> list[Step]:
    """
    Extract and validate a plan from raw model output.

    Tries, in order: the whole text as JSON, a double-encoded JSON string,
    and the widest [...] span in the text. Raises PlanParseError when none
    of them produce an array of step objects.
    """
    if not raw_text or not raw_text.strip():
        raise PlanParseError("Model returned no content.")

    items = _extract_array(raw_text)
    if items is None:
        raise PlanParseError(f"No JSON array found in model output: {raw_text[:200]!r}")

    try:
        return [Step.model_validate(item) for item in items]
    except ValidationError as exc:
        raise PlanParseError(f"Plan steps are invalid: {exc}") from exc
