"""Multi-turn chat against the AI endpoint with optimistic updates."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from ..messages import ChatMessage
from .client import AssistantClient
from .errors import AssistantError, RequestAbandonedError, session_expired
from .sessions import SessionTokenProvider, resolve_token
from .state import StateStore
from .types import AssistantSession


class ChatSessionManager:
    """Owns the transcript; one send is in flight at a time, later sends queue."""

    def __init__(
        self,
        store: StateStore,
        client: AssistantClient,
        tokens: SessionTokenProvider,
        *,
        is_eligible: Callable[[], bool],
        current_session: Callable[[], Optional[AssistantSession]],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._client = client
        self._tokens = tokens
        self._is_eligible = is_eligible
        self._current_session = current_session
        self._logger = logger or logging.getLogger(__name__)

    async def send_message(self, text: str) -> Optional[ChatMessage]:
        """Send one user turn and return the assistant reply.

        Failures are recorded in the state (not raised) and the optimistic
        user message is rolled back. Returns None for no-ops and failures.
        """
        content = text.strip() if isinstance(text, str) else ""
        session = self._current_session()
        if not content or session is None or not self._is_eligible():
            return None

        store = self._store
        store.begin_chat_send()
        try:
            async with store.chat_lock:
                if session.ended or not self._is_eligible():
                    return None
                return await self._send(session, content)
        finally:
            # an ended session already reset the store
            if not session.cancellation.cancelled:
                store.end_chat_send()
                store.changed()

    async def _send(self, session: AssistantSession, content: str) -> Optional[ChatMessage]:
        store = self._store
        cancel = session.cancellation

        store.error = None
        transaction = store.transcript.begin(ChatMessage.user(content))
        snapshot = transaction.apply()
        store.changed()

        try:
            token = await cancel.guard(resolve_token(self._tokens))
            if token is None:
                raise session_expired()
            response = await cancel.guard(self._client.request_chat(token, snapshot))
            AssistantClient.raise_for_error(response)
            reply = AssistantClient.parse_reply(response)
        except RequestAbandonedError:
            self._log_debug("abandoned", turns=len(snapshot))
            return None
        except AssistantError as exc:
            transaction.revert()
            store.error = exc
            self._log_debug(
                "send-failed",
                turns=len(snapshot),
                category=exc.category.value if exc.category else None,
                status=exc.status,
            )
            return None
        except BaseException:
            if not cancel.cancelled:
                transaction.revert()
            raise
        else:
            transaction.commit()
            # relative to the live transcript, which clear_chat may have reset
            store.transcript.append(reply)
            self._log_debug("reply", turns=len(store.transcript))
            return reply

    def clear_chat(self) -> None:
        self._store.transcript.clear()
        self._store.error = None
        self._store.changed()

    def _log_debug(self, event: str, **extra: object) -> None:
        payload = {"event": event}
        payload.update(extra)
        self._logger.debug("chat-session", extra={"chat": payload})
