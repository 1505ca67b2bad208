"""Pull a single JSON object out of free-form model output."""

from __future__ import annotations

import json
import re

from nodemesh.log import logger

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)


def _outer_brace_span(text: str) -> str | None:
    """Return the first balanced {...} span, ignoring braces inside string literals."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json(text: str | None) -> dict | None:
    """Return the JSON object embedded in ``text``, or None.

    A fenced code block wins over a bare object in prose. Parse failures
    and non-object payloads return None rather than raising.
    """
    if not text:
        return None

    candidate = None
    fence = _FENCE_PATTERN.search(text)
    if fence:
        candidate = _outer_brace_span(fence.group(1)) or fence.group(1).strip()
    if candidate is None:
        candidate = _outer_brace_span(text)
    if not candidate:
        return None

    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        logger.debug("Structured output did not parse: %.200r", candidate)
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed
