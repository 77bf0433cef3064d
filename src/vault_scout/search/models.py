"""Structured judgments and results for vault search."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

PARSE_ERROR_REASON = "parse error"


@dataclass(slots=True, frozen=True)
class RelevanceJudgment:
    """Model verdict on a note or on which subfolders to explore."""

    relevant: bool
    confidence: float
    reason: str
    excerpt: str | None = None
    suggested_children: tuple[str, ...] = ()

    @classmethod
    def parse_error(cls) -> RelevanceJudgment:
        return cls(relevant=False, confidence=0.0, reason=PARSE_ERROR_REASON)

    @classmethod
    def unavailable(cls, reason: str) -> RelevanceJudgment:
        return cls(relevant=False, confidence=0.0, reason=reason)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RelevanceJudgment:
        """Build a judgment from a parsed response, coercing loose types."""

        suggested = payload.get("suggestedExplore", payload.get("suggested_children"))
        return cls(
            relevant=_coerce_bool(payload.get("relevant")),
            confidence=_coerce_confidence(payload.get("confidence")),
            reason=str(payload.get("reason") or ""),
            excerpt=_coerce_excerpt(payload.get("excerpt")),
            suggested_children=_coerce_names(suggested),
        )


@dataclass(slots=True, frozen=True)
class SearchResult:
    """One relevant note found during traversal."""

    path: str
    title: str
    relevance: float
    excerpt: str
    confidence: float


@dataclass(slots=True)
class SearchContext:
    """Mutable state of one search run.

    ``explored_paths`` and ``found_results`` are only written while holding
    ``lock``.
    """

    query: str
    max_depth: int
    current_depth: int = 0
    explored_paths: set[str] = field(default_factory=set)
    explored_order: list[str] = field(default_factory=list)
    found_results: list[SearchResult] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def _coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return False


def _coerce_confidence(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0.0
    if not isinstance(value, int | float):
        return 0.0
    return min(1.0, max(0.0, float(value)))


def _coerce_excerpt(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text.lower() == "null":
        return None
    return text


def _coerce_names(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
