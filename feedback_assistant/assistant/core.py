"""Composition root exposing the assistant's state and operations to callers."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Union

from ..messages import ChatMessage
from .chat import ChatSessionManager
from .client import AssistantClient
from .sessions import SessionTokenProvider
from .state import StateListener, StateStore
from .summaries import Notifier, SummaryCacheController
from .types import AssistantSession, InteractionState, Summary, SummaryMode

Eligibility = Union[bool, Callable[[], bool]]


class InteractionCore:
    """Public facade used by the CLI and the interactive chat loop.

    Every operation is gated on the eligibility flag, which is re-evaluated
    on each call. State is scoped to the bound session: binding a session
    for a different actor, or ending the current one, abandons in-flight
    requests and starts from a fresh state.
    """

    def __init__(
        self,
        client: AssistantClient,
        tokens: SessionTokenProvider,
        *,
        eligible: Eligibility,
        session: Optional[AssistantSession] = None,
        notifier: Optional[Notifier] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._eligible = eligible
        self._session = session
        self._logger = logger or logging.getLogger(__name__)
        self._store = StateStore(logger=self._logger)
        self._init_task: Optional[asyncio.Task] = None
        self._summaries = SummaryCacheController(
            self._store,
            client,
            tokens,
            is_eligible=self.is_eligible,
            current_session=self._current_session,
            notifier=notifier,
            logger=self._logger,
        )
        self._chat = ChatSessionManager(
            self._store,
            client,
            tokens,
            is_eligible=self.is_eligible,
            current_session=self._current_session,
            logger=self._logger,
        )

    @property
    def state(self) -> InteractionState:
        return self._store.snapshot()

    @property
    def session(self) -> Optional[AssistantSession]:
        return self._session

    def is_eligible(self) -> bool:
        flag = self._eligible() if callable(self._eligible) else self._eligible
        return bool(flag)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    # ------------------------------
    # Session lifecycle
    # ------------------------------
    def bind_session(self, session: AssistantSession) -> None:
        """Attach a session; a different actor replaces all state."""
        current = self._session
        if current is session:
            return
        if current is not None and current.actor_id == session.actor_id and not current.ended:
            return
        if current is not None:
            current.cancellation.cancel()
        self._session = session
        self._store.reset()

    def end_session(self) -> None:
        """Abandon in-flight work and drop all state for the current session."""
        current = self._session
        if current is None:
            return
        current.cancellation.cancel()
        self._session = None
        self._store.reset()

    def _current_session(self) -> Optional[AssistantSession]:
        session = self._session
        if session is None or session.ended:
            return None
        return session

    # ------------------------------
    # Operations
    # ------------------------------
    async def initialize(self) -> bool:
        """Perform the one-time silent cache check if it has not run yet."""
        return await self._summaries.initialize()

    def schedule_initialize(self) -> Optional[asyncio.Task]:
        """Start the one-time check in the background without awaiting it."""
        if self._store.has_initialized or self._store.initializing or not self.is_eligible():
            return None
        if self._init_task is not None and not self._init_task.done():
            return self._init_task
        self._init_task = asyncio.ensure_future(self._summaries.initialize())
        return self._init_task

    async def fetch_summary(
        self,
        mode: SummaryMode = SummaryMode.REFRESH,
        *,
        notify: bool = False,
    ) -> Optional[Summary]:
        return await self._summaries.fetch_summary(mode, notify=notify)

    async def send_message(self, text: str) -> Optional[ChatMessage]:
        return await self._chat.send_message(text)

    def clear_chat(self) -> None:
        self._chat.clear_chat()

    def clear_error(self) -> None:
        self._store.error = None
        self._store.changed()
