"""
Lenient JSON extraction from model output.

Generated text often wraps JSON in markdown fences, adds prose around it,
puts raw newlines inside strings or uses escapes JSON does not allow
(`\\(`, `\\d`). safe_json_parse() tries, in order:

1. the text with fences stripped
2. the first balanced `{...}` or `[...]` value in it
3. that value with string newlines escaped and invalid escapes dropped
"""

from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger

CODE_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

VALID_ESCAPES = frozenset('"\\/bfnrtu')


def strip_code_fences(text: str | None) -> str:
    """Return the body of the first fenced block, or the trimmed text."""
    trimmed = (text or "").strip()
    match = CODE_FENCE_RE.search(trimmed)
    if match and match.group(1):
        return match.group(1).strip()
    return trimmed


def extract_first_json_value(text: str | None) -> str | None:
    """
    Slice out the first balanced JSON object or array.

    Brackets inside string literals (including escaped quotes) are ignored.
    Returns None when no opening bracket exists or it is never closed.
    """
    src = strip_code_fences(text)
    starts = [i for i in (src.find("{"), src.find("[")) if i != -1]
    if not starts:
        return None

    start = min(starts)
    opener = src[start]
    closer = "}" if opener == "{" else "]"

    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(src)):
        ch = src[i]

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
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return src[start : i + 1]

    return None


def escape_newlines_in_strings(text: str) -> str:
    """Escape raw LF inside string literals and drop raw CR."""
    out = []
    in_string = False
    escaped = False

    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            elif ch == "\n":
                out.append("\\n")
                continue
            elif ch == "\r":
                continue
        elif ch == '"':
            in_string = True
        out.append(ch)

    return "".join(out)


def drop_invalid_escapes(text: str) -> str:
    """Remove backslashes that start an escape JSON does not define."""
    out = []
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                nxt = text[i + 1] if i + 1 < len(text) else ""
                if nxt and nxt not in VALID_ESCAPES:
                    continue
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        out.append(ch)

    return "".join(out)


def safe_json_parse(text: str | None) -> Any | None:
    """
    Parse JSON out of model output.

    Returns:
        The parsed value, or None when no strategy yields valid JSON
    """
    raw = strip_code_fences(text)
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, RecursionError):
        pass

    candidate = extract_first_json_value(raw)
    if candidate is None:
        logger.debug("No JSON value found in model output")
        return None

    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        pass

    repaired = drop_invalid_escapes(escape_newlines_in_strings(candidate))
    try:
        return json.loads(repaired)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.debug(f"Model output is not repairable JSON: {e}")
        return None
