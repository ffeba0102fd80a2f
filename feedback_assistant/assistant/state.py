"""Mutable interaction state shared by the summary and chat controllers."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from ..messages import Transcript
from .errors import AssistantError
from .types import InteractionState, Summary

StateListener = Callable[[InteractionState], None]


class StateStore:
    """Single owner of the live state; listeners receive immutable snapshots."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._listeners: List[StateListener] = []
        self.reset(notify=False)

    def reset(self, *, notify: bool = True) -> None:
        self.summary: Optional[Summary] = None
        self.transcript = Transcript()
        self.error: Optional[AssistantError] = None
        self._chat_sends = 0
        self.has_initialized = False
        self.initializing = False
        self.chat_lock = asyncio.Lock()
        self._summary_loads = 0
        if notify:
            self.changed()

    @property
    def is_loading_summary(self) -> bool:
        return self._summary_loads > 0

    def begin_summary_load(self) -> None:
        self._summary_loads += 1

    def end_summary_load(self) -> None:
        self._summary_loads = max(0, self._summary_loads - 1)

    @property
    def is_loading_chat(self) -> bool:
        """True from the moment a send is queued until the last one finishes."""
        return self._chat_sends > 0

    def begin_chat_send(self) -> None:
        self._chat_sends += 1

    def end_chat_send(self) -> None:
        self._chat_sends = max(0, self._chat_sends - 1)

    def snapshot(self) -> InteractionState:
        return InteractionState(
            summary=self.summary,
            transcript=self.transcript.messages,
            is_loading_summary=self.is_loading_summary,
            is_loading_chat=self.is_loading_chat,
            error=self.error,
            has_initialized=self.has_initialized,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def changed(self) -> None:
        if not self._listeners:
            return
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                self._logger.exception("State listener %r failed", listener)
