"""Normalise raw summary payloads into Summary objects."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from .types import Summary


def project_summary(data: Mapping[str, Any]) -> Optional[Summary]:
    """Return a Summary, or None when the payload carries no content.

    A 200 response with an empty text and empty lists is treated exactly like
    a cache miss.
    """
    if not isinstance(data, Mapping):
        return None

    text = data.get("summary")
    if not isinstance(text, str):
        text = data.get("text")
    text = text if isinstance(text, str) else ""
    top_issues = _string_list(data.get("topIssues"))
    top_strengths = _string_list(data.get("topStrengths"))

    if not text.strip() and not top_issues and not top_strengths:
        return None

    generated_at = data.get("generatedAt")
    return Summary(
        text=text,
        top_issues=top_issues,
        top_strengths=top_strengths,
        limit_reached=data.get("limitReached") is True,
        generated_at=generated_at if isinstance(generated_at, str) else None,
        from_cache=data.get("fromCache") is True,
        is_stale=data.get("isStale") is True,
    )


def _string_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item for item in value if isinstance(item, str))
