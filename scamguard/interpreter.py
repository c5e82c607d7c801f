# scamguard/interpreter.py
"""
Turn raw completion content into the value returned to the caller.

Parse trouble never propagates: structured content that cannot be read as a
JSON object degrades to the "unknown" classification.
"""

import json
import math
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from scamguard import monitoring
from scamguard.schemas import ScamClassification

NON_JSON_REASON = "Model returned non-JSON response."

CLASSIFICATION_SCHEMA = {
    "type": "object",
    "properties": {
        "label": {"enum": ["scam", "safe", "unknown"]},
        "confidence": {"type": "number"},
        "reason": {"type": "string", "minLength": 1},
    },
}
_validator = Draft7Validator(CLASSIFICATION_SCHEMA)


def interpret_plain(content: Optional[str], fallback: str) -> str:
    return content if content else fallback


def _extract_first_json(text: str) -> str:
    """Find the first JSON object in text, removing surrounding fences if any."""
    s = text.strip()
    if s.startswith("```") and s.endswith("```"):
        lines = s.splitlines()
        if len(lines) >= 3:
            s = "\n".join(lines[1:-1]).strip()
    first = s.find('{')
    if first == -1:
        return s
    last = s.rfind('}')
    if last == -1:
        return s
    return s[first:last + 1]


def _coerce(parsed: Dict[str, Any]) -> ScamClassification:
    defaults = ScamClassification()
    values = {
        "label": parsed.get("label", defaults.label),
        "confidence": parsed.get("confidence", defaults.confidence),
        "reason": parsed.get("reason", defaults.reason),
    }
    # reset every field the schema rejects
    for err in _validator.iter_errors(parsed):
        if err.path:
            field = err.path[0]
            values[field] = getattr(defaults, field)

    # clamp first: ints too large for a float only compare safely as ints
    confidence = min(max(values["confidence"], 0), 100)
    if not math.isfinite(confidence):
        confidence = defaults.confidence
    values["confidence"] = confidence
    return ScamClassification(**values)


def interpret_structured(content: Optional[str]) -> ScamClassification:
    try:
        parsed = json.loads(_extract_first_json(content or ""))
    except ValueError:
        parsed = None
    if not isinstance(parsed, dict):
        monitoring.inc_structured_parse("non_json")
        monitoring.logger.warning("Completion content was not a JSON object",
                                  extra={"content_preview": (content or "")[:200]})
        return ScamClassification(label="unknown", confidence=0, reason=NON_JSON_REASON)

    monitoring.inc_structured_parse("success")
    return _coerce(parsed)
