"""Shared exports for the AI assistant feature."""
from __future__ import annotations

from .chat import ChatSessionManager
from .client import AssistantClient, EndpointResponse
from .core import InteractionCore
from .errors import (
    AssistantError,
    AssistantServerError,
    ConfigurationError,
    ErrorCategory,
    InsufficientDataError,
    MalformedResponseError,
    QuotaExceededError,
    RequestAbandonedError,
    SessionExpiredError,
    classify_response,
)
from .projector import project_summary
from .sessions import (
    CancellationToken,
    ChainedTokenProvider,
    EnvTokenProvider,
    FileTokenProvider,
    SessionTokenProvider,
    StaticTokenProvider,
)
from .summaries import SummaryCacheController
from .types import AssistantSession, InteractionState, Summary, SummaryMode


__all__ = [
    "Summary",
    "SummaryMode",
    "InteractionState",
    "AssistantSession",
    "AssistantClient",
    "EndpointResponse",
    "SummaryCacheController",
    "ChatSessionManager",
    "InteractionCore",
    "project_summary",
    "classify_response",
    "ErrorCategory",
    "AssistantError",
    "SessionExpiredError",
    "QuotaExceededError",
    "InsufficientDataError",
    "AssistantServerError",
    "MalformedResponseError",
    "RequestAbandonedError",
    "ConfigurationError",
    "SessionTokenProvider",
    "StaticTokenProvider",
    "EnvTokenProvider",
    "FileTokenProvider",
    "ChainedTokenProvider",
    "CancellationToken",
]
