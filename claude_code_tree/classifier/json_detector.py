"""JSON detection for tool output.

Only a successful decode counts as JSON. Pattern indicators are kept for
the heuristic tier, where malformed-but-JSON-shaped text still matters.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

DEFAULT_MAX_SIZE = 1024 * 1024

_BRACKET_PAIRS = {"{": "}", "[": "]"}

# Shapes that suggest JSON even when the text does not decode
JSON_PATTERNS = (
    re.compile(r"\A\s*\{.*\}\s*\Z", re.DOTALL),  # Object
    re.compile(r"\A\s*\[.*\]\s*\Z", re.DOTALL),  # Array
    re.compile(r'"[^"]*"\s*:\s*[\[{]'),  # Key with complex value
    re.compile(r'"[^"]*"\s*:\s*"[^"]*"'),  # Simple key-value pair
    re.compile(r'"type"\s*:\s*"[^"]*"'),  # Common type field
)


@dataclass
class JsonDetection:
    is_json: bool
    parsed: Any = None


def robust_json_validation(
    content: str, max_size: int = DEFAULT_MAX_SIZE
) -> JsonDetection:
    """Validate content as a JSON object or array by decoding it.

    The trimmed text must start and end with a matching bracket pair before
    a decode is attempted. Content over ``max_size`` characters is not parsed.
    """
    if len(content) > max_size:
        return JsonDetection(False)

    trimmed = content.strip()
    if len(trimmed) < 2:
        return JsonDetection(False)

    closing = _BRACKET_PAIRS.get(trimmed[0])
    if closing is None or trimmed[-1] != closing:
        return JsonDetection(False)

    try:
        parsed = json.loads(trimmed)
    except ValueError:
        return JsonDetection(False)

    if not isinstance(parsed, (dict, list)):
        return JsonDetection(False)
    return JsonDetection(True, parsed)


def is_json_content(content: str, max_size: int = DEFAULT_MAX_SIZE) -> bool:
    return robust_json_validation(content, max_size).is_json


def count_json_indicators(content: str) -> int:
    """How many JSON shape patterns the content matches."""
    return sum(1 for pattern in JSON_PATTERNS if pattern.search(content))


def describe_json(parsed: Any) -> dict[str, Any]:
    """Facts about decoded JSON for classification metadata."""
    facts: dict[str, Any] = {
        "is_json": True,
        "json_type": "object" if isinstance(parsed, dict) else "array",
    }
    if isinstance(parsed, dict):
        facts["is_mcp_response"] = "jsonrpc" in parsed or (
            "result" in parsed and "id" in parsed
        )
        facts["has_error_key"] = "error" in parsed
    return facts
