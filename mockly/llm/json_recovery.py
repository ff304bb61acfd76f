"""Extract and validate JSON from LLM responses."""

import json
import re
from typing import Any

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\n?")
_FENCE_CLOSE = re.compile(r"```\s*$")

_PAIRS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Remove a ```lang opener at the very start and a ``` closer at the very end."""
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _try_parse(value: str) -> Any | None:
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None


def _find_balanced_slice(source: str, start: int) -> str | None:
    """
    Return the span from source[start] to its matching closing bracket.

    Brackets inside string literals are not structural, and a backslash
    escapes the following character. A mismatched closer invalidates the
    span. If input ends with only the outermost bracket still open and the
    source's last character closes it, the remainder is returned as-is.
    """
    opening = source[start]
    if opening not in _PAIRS:
        return None

    stack = [opening]
    in_string = False
    escaped = False

    for i in range(start + 1, len(source)):
        char = source[i]

        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char in _PAIRS:
            stack.append(char)
        elif char == "}" or char == "]":
            if char != _PAIRS[stack[-1]]:
                return None
            stack.pop()
            if not stack:
                return source[start:i + 1]

    if len(stack) == 1 and source.endswith(_PAIRS[opening]):
        return source[start:]
    return None


def recover_json_candidate(raw: str) -> Any | None:
    """
    Recover the first valid JSON object or array from LLM output.

    Tries the whole (fence-stripped) text first, then every balanced
    ``{...}``/``[...]`` span in order of its opening bracket; the first span
    that parses wins. Returns None when nothing parses. Never raises.
    """
    if not isinstance(raw, str):
        return None
    cleaned = strip_code_fences(raw)
    direct = _try_parse(cleaned)
    if direct is not None:
        return direct

    for i, char in enumerate(cleaned):
        if char not in _PAIRS:
            continue
        candidate = _find_balanced_slice(cleaned, i)
        if not candidate:
            continue
        parsed = _try_parse(candidate)
        if parsed is not None:
            return parsed
    return None


def extract_json(text: str) -> dict[str, Any] | None:
    """
    Extract first JSON object from text.

    Handles LLM responses that may include prose or code fences around the
    JSON. A recovered array or scalar is not an object and yields None.
    """
    result = recover_json_candidate(text)
    if isinstance(result, dict):
        return result
    return None


def extract_json_with_fallback(text: str) -> dict[str, Any]:
    """Extract JSON or return fallback with raw text."""
    result = extract_json(text)
    if result is not None:
        return result
    return {"raw": text}
