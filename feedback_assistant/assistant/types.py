"""Dataclasses shared across the assistant feature."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Tuple

from ..messages import ChatMessage
from .sessions import CancellationToken

if TYPE_CHECKING:
    from .errors import AssistantError


class SummaryMode(enum.Enum):
    """How a summary fetch may use the backend."""

    REFRESH = "refresh"
    CACHE_ONLY = "cache_only"


@dataclass(frozen=True)
class Summary:
    """Normalized AI summary of recent customer feedback."""

    text: str = ""
    top_issues: Tuple[str, ...] = ()
    top_strengths: Tuple[str, ...] = ()
    limit_reached: bool = False
    generated_at: Optional[str] = None
    from_cache: bool = False
    is_stale: bool = False

    def to_dict(self) -> dict:
        return {
            "summary": self.text,
            "topIssues": list(self.top_issues),
            "topStrengths": list(self.top_strengths),
            "limitReached": self.limit_reached,
            "generatedAt": self.generated_at,
            "fromCache": self.from_cache,
            "isStale": self.is_stale,
        }


@dataclass(frozen=True)
class InteractionState:
    """Immutable snapshot handed to listeners and UI callers."""

    summary: Optional[Summary] = None
    transcript: Tuple[ChatMessage, ...] = ()
    is_loading_summary: bool = False
    is_loading_chat: bool = False
    error: Optional["AssistantError"] = None
    has_initialized: bool = False

    @property
    def error_category(self):
        return self.error.category if self.error is not None else None


@dataclass
class AssistantSession:
    """One authenticated actor's interactive session.

    ``actor_id`` identifies the session; binding a session with a different
    actor resets all interaction state.
    """

    actor_id: str
    cancellation: CancellationToken = field(default_factory=CancellationToken, repr=False)

    @property
    def ended(self) -> bool:
        return self.cancellation.cancelled
