"""Tolerant parsing of JSON-shaped model responses."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


@dataclass(slots=True, frozen=True)
class Parsed:
    """Response contained a JSON object."""

    payload: dict[str, Any]


@dataclass(slots=True, frozen=True)
class Malformed:
    """Response could not be read as a JSON object."""

    raw: str
    reason: str


ParseResult = Parsed | Malformed


def parse_json_response(text: str) -> ParseResult:
    """Extract one JSON object from a model response.

    Tries the whole text, then a fenced block, then the outermost brace span.
    """

    stripped = _strip_fences(text)
    if not stripped:
        return Malformed(raw=text, reason="empty response")

    direct = _try_load(stripped)
    if isinstance(direct, dict):
        return Parsed(direct)
    if direct is not None:
        return Malformed(raw=text, reason=f"expected JSON object, got {type(direct).__name__}")

    fenced = _FENCED_JSON.search(text)
    if fenced is not None:
        payload = _try_load(fenced.group(1))
        if isinstance(payload, dict):
            return Parsed(payload)

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end > start:
        payload = _try_load(stripped[start : end + 1])
        if isinstance(payload, dict):
            return Parsed(payload)
    return Malformed(raw=text, reason="no JSON object found")


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _try_load(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None
