"""Summary retrieval: cache-only vs refresh fetches and the one-time startup check."""
from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from .client import AssistantClient
from .errors import (
    AssistantError,
    ErrorCategory,
    RequestAbandonedError,
    session_expired,
)
from .projector import project_summary
from .sessions import SessionTokenProvider, resolve_token
from .state import StateStore
from .types import AssistantSession, Summary, SummaryMode

Notifier = Callable[[str], None]

DEFAULT_LIMIT_NOTICE = "Límite diario de consultas alcanzado. Vuelve mañana."


class SummaryCacheController:
    """Fetches the feedback summary and applies the result to the shared state."""

    def __init__(
        self,
        store: StateStore,
        client: AssistantClient,
        tokens: SessionTokenProvider,
        *,
        is_eligible: Callable[[], bool],
        current_session: Callable[[], Optional[AssistantSession]],
        notifier: Optional[Notifier] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._client = client
        self._tokens = tokens
        self._is_eligible = is_eligible
        self._current_session = current_session
        self._notifier = notifier
        self._logger = logger or logging.getLogger(__name__)

    async def fetch_summary(
        self,
        mode: SummaryMode = SummaryMode.REFRESH,
        *,
        notify: bool = False,
    ) -> Optional[Summary]:
        """Return the resulting summary; errors are recorded and re-raised.

        Ineligible sessions make this a no-op returning None.
        """
        session = self._current_session()
        if session is None or not self._is_eligible():
            return None
        return await self._fetch(session, mode, notify=notify, surface_errors=True)

    async def initialize(self) -> bool:
        """Run the silent cache-only check once per session.

        Returns True when this call performed the check.
        """
        session = self._current_session()
        store = self._store
        if session is None or not self._is_eligible():
            return False
        if store.has_initialized or store.initializing:
            return False

        store.initializing = True
        try:
            await self._fetch(session, SummaryMode.CACHE_ONLY, notify=False, surface_errors=False)
        except RequestAbandonedError:
            return False
        except AssistantError as exc:
            self._log_debug("initial-check-failed", mode=SummaryMode.CACHE_ONLY, extra={"category": _category(exc)})
        except Exception as exc:
            self._log_debug(
                "initial-check-failed", mode=SummaryMode.CACHE_ONLY, extra={"error": type(exc).__name__}
            )
        finally:
            if not session.ended:
                store.initializing = False

        if session.ended:
            return False
        store.has_initialized = True
        store.changed()
        return True

    async def _fetch(
        self,
        session: AssistantSession,
        mode: SummaryMode,
        *,
        notify: bool,
        surface_errors: bool,
    ) -> Optional[Summary]:
        store = self._store
        cancel = session.cancellation
        # cache-only fetches run invisibly
        show_loading = mode is SummaryMode.REFRESH

        if surface_errors:
            store.error = None
        if show_loading:
            store.begin_summary_load()
        if surface_errors or show_loading:
            store.changed()

        try:
            token = await cancel.guard(resolve_token(self._tokens))
            if token is None:
                raise session_expired()
            response = await cancel.guard(
                self._client.request_summary(token, only_cache=mode is SummaryMode.CACHE_ONLY)
            )
            AssistantClient.raise_for_error(response)
            return self._apply(response.data, mode, notify=notify)
        except RequestAbandonedError:
            raise
        except AssistantError as exc:
            if exc.category is ErrorCategory.INSUFFICIENT_DATA:
                store.summary = None
            if surface_errors:
                store.error = exc
            if notify and exc.category is ErrorCategory.QUOTA_EXCEEDED:
                self._notify(exc.message or DEFAULT_LIMIT_NOTICE)
            self._log_debug("fetch-failed", mode=mode, extra={"category": _category(exc), "status": exc.status})
            raise
        finally:
            if not cancel.cancelled:
                if show_loading:
                    store.end_summary_load()
                store.changed()

    def _apply(self, data: Mapping[str, object], mode: SummaryMode, *, notify: bool) -> Optional[Summary]:
        store = self._store
        if data.get("noCache") is True:
            store.summary = None
            self._log_debug("cache-miss", mode=mode)
            return None

        limit_reached = data.get("limitReached") is True
        if limit_reached and notify:
            message = data.get("error")
            self._notify(message if isinstance(message, str) and message else DEFAULT_LIMIT_NOTICE)

        summary = project_summary(data)
        if summary is None and limit_reached:
            # quota signals never clear existing content
            self._log_debug("limit-reached", mode=mode)
            return store.summary

        store.summary = summary
        self._log_debug(
            "summary-applied" if summary else "summary-empty",
            mode=mode,
            extra={"from_cache": bool(summary and summary.from_cache), "limit_reached": limit_reached},
        )
        return summary

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier(message)
        except Exception:
            self._logger.exception("Quota notifier failed")

    def _log_debug(self, event: str, *, mode: SummaryMode, extra: Optional[Mapping[str, object]] = None) -> None:
        payload = {"event": event, "mode": mode.value}
        if extra:
            payload.update(dict(extra))
        self._logger.debug("summary-controller", extra={"summary": payload})


def _category(exc: AssistantError) -> Optional[str]:
    return exc.category.value if exc.category else None
