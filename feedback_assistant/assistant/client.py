"""Thin async wrapper around the AI helper endpoint."""
from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

import httpx

from ..messages import ChatMessage, messages_payload
from .errors import (
    ConfigurationError,
    MalformedResponseError,
    classify_response,
    classify_transport_error,
)


@dataclass
class EndpointResponse:
    """Decoded response; ``data`` is ``{}`` when the body was not a JSON object."""

    status_code: int
    data: Mapping[str, Any]
    parse_failed: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class AssistantClient:
    """Co-ordinates requests to the single POST endpoint behind the assistant."""

    _DEFAULT_TIMEOUT = 20.0
    _DEFAULT_MAX_RETRIES = 0

    def __init__(
        self,
        endpoint_url: str,
        anon_key: str,
        *,
        timeout: float = _DEFAULT_TIMEOUT,
        max_retries: int = _DEFAULT_MAX_RETRIES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not endpoint_url:
            raise ConfigurationError("AI endpoint URL is required")
        if not anon_key:
            raise ConfigurationError("Public API key is required")

        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self._logger = logger or logging.getLogger(__name__)

        headers = {
            "apikey": anon_key,
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(headers=headers, timeout=self.timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AssistantClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------
    # Actions
    # ------------------------------
    async def request_summary(self, token: str, *, only_cache: bool) -> EndpointResponse:
        """Ask for the feedback summary; never raises on non-OK status."""
        return await self.post(token, {"action": "summary", "onlyCache": only_cache})

    async def request_chat(self, token: str, messages: Sequence[ChatMessage]) -> EndpointResponse:
        """Submit the whole transcript; the endpoint keeps no conversation state."""
        return await self.post(token, {"action": "chat", "messages": messages_payload(messages)})

    @staticmethod
    def raise_for_error(response: EndpointResponse) -> None:
        """Raise the classified error for a failed response."""
        if not response.ok:
            raise classify_response(response.status_code, response.data, parse_failed=response.parse_failed)
        if response.data.get("error") and not response.data.get("limitReached"):
            raise classify_response(response.status_code, response.data)

    @staticmethod
    def parse_reply(response: EndpointResponse) -> ChatMessage:
        reply = response.data.get("reply")
        if not isinstance(reply, str):
            raise MalformedResponseError("AI endpoint chat response missing reply", status=response.status_code)
        return ChatMessage.assistant(reply)

    # ------------------------------
    # HTTP helpers
    # ------------------------------
    async def post(self, token: str, payload: Mapping[str, Any]) -> EndpointResponse:
        headers = {"Authorization": f"Bearer {token}"}
        last_error: Optional[httpx.HTTPError] = None
        for attempt in range(self.max_retries + 1):
            try:
                response = await self._client.post(self.endpoint_url, json=dict(payload), headers=headers)
            except httpx.HTTPError as exc:  # network issues and deadlines
                last_error = exc
                self._logger.debug(
                    "assistant-client",
                    extra={"assistant": {"event": "transport-error", "attempt": attempt, "error": type(exc).__name__}},
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self._backoff_seconds(attempt))
                continue

            decoded = self._safe_json(response)
            self._logger.debug(
                "assistant-client",
                extra={
                    "assistant": {
                        "event": "response",
                        "action": payload.get("action"),
                        "status": response.status_code,
                        "parse_failed": decoded.parse_failed,
                    }
                },
            )
            return decoded

        raise classify_transport_error(last_error) from last_error

    def _safe_json(self, response: httpx.Response) -> EndpointResponse:
        try:
            data = response.json()
        except ValueError:
            return EndpointResponse(response.status_code, {}, parse_failed=True)
        if not isinstance(data, dict):
            return EndpointResponse(response.status_code, {}, parse_failed=True)
        return EndpointResponse(response.status_code, data)

    def _backoff_seconds(self, attempt: int) -> float:
        base = min(2 ** attempt, 16)
        jitter = random.uniform(0.5, 1.5)
        return max(0.5, base * jitter)
