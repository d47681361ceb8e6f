"""
Best-effort repair of model output into canonical JSON.

The summary prompt asks for strict JSON, but models wrap it in code fences,
use typographic quotes or leave trailing commas. normalize_summary_json runs
these pure steps in order:

1. strip_invisible_prefix   leading BOM / zero-width characters, all NUL bytes
2. unwrap_code_fence        keep only the body of a ```json fenced block
3. straighten_quotes        “ ” -> "   ‘ ’ -> '
4. strip_trailing_commas    ",}" -> "}"   ",]" -> "]"
5. parse + canonical dump
6. slice first "{" .. last "}", re-apply 3-4, parse + dump
7. give up: return the ORIGINAL raw text

A failed parse is never an error; callers must accept non-JSON summaries.
"""

import json
import re
from typing import Any, Optional

_INVISIBLE_PREFIX = re.compile(r"^[\ufeff\u200b-\u200d\u2060]+")
_CODE_FENCE = re.compile(r"^```(?:json)?[ \t]*\r?\n?(.*?)\r?\n?```$", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")

_QUOTE_MAP = str.maketrans({
    "\u201c": '"',
    "\u201d": '"',
    "\u2018": "'",
    "\u2019": "'",
})


def strip_invisible_prefix(text: str) -> str:
    return _INVISIBLE_PREFIX.sub("", text.replace("\x00", ""))


def unwrap_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def straighten_quotes(text: str) -> str:
    return text.translate(_QUOTE_MAP)


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def sanitize(text: str) -> str:
    """Steps 3 and 4."""
    return strip_trailing_commas(straighten_quotes(text))


def canonical_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _try_parse(text: str) -> Optional[str]:
    try:
        return canonical_dumps(json.loads(text))
    except (ValueError, RecursionError):
        return None


def extract_object_span(text: str) -> Optional[str]:
    """Text from the first "{" to the last "}" inclusive, if both exist in order."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def normalize_summary_json(raw: str) -> str:
    """Return canonical JSON for `raw` when it can be repaired, else `raw` unchanged."""
    cleaned = sanitize(unwrap_code_fence(strip_invisible_prefix(raw)))

    parsed = _try_parse(cleaned)
    if parsed is not None:
        return parsed

    span = extract_object_span(cleaned)
    if span is not None:
        parsed = _try_parse(sanitize(span))
        if parsed is not None:
            return parsed

    return raw
