"""Helpers for pulling a JSON object out of an LLM text response.

Models asked for JSON still wrap it in markdown fences or surround it with
a sentence of prose often enough that every caller needs the same
clean-up.  Strategies, in order:

1. Clean JSON: ``{"snippets": [...]}``
2. Markdown-fenced: a json code fence around the object
3. JSON embedded in prose: the outermost ``{ ... }`` span
"""

from __future__ import annotations

import json
import re
from typing import Any

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)


def parse_json_object(response: str) -> dict[str, Any]:
    """Return the JSON object contained in *response*.

    Raises
    ------
    ValueError
        If no JSON object can be decoded (``json.JSONDecodeError`` is a
        ``ValueError`` subclass and propagates as such).
    """
    cleaned = response.strip()

    fence_match = _JSON_FENCE_RE.search(cleaned)
    if fence_match:
        cleaned = fence_match.group(1).strip()
    elif not cleaned.startswith("{"):
        brace_start = cleaned.find("{")
        brace_end = cleaned.rfind("}")
        if brace_start != -1 and brace_end > brace_start:
            cleaned = cleaned[brace_start : brace_end + 1]

    data = json.loads(cleaned)
    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return data
