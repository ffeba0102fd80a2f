"""
Shared fixtures for feedback-assistant tests.
"""

import json
from typing import Optional

import httpx
import pytest

from feedback_assistant.assistant import (
    AssistantClient,
    AssistantSession,
    InteractionCore,
)

ENDPOINT_URL = "https://project.example.test/functions/v1/ai-helper"
ANON_KEY = "anon-public-key"
TOKEN = "session-token-123"


class FakeEndpoint:
    """Callable handler for httpx.MockTransport.

    Queued items are consumed in order. An item may be an httpx.Response, an
    exception to raise, or an async callable receiving the decoded payload and
    returning a Response.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.payloads: list[dict] = []
        self._queue: list = []
        self.default: Optional[httpx.Response] = None

    def queue(self, *items):
        self._queue.extend(items)
        return self

    def queue_json(self, data, status_code: int = 200):
        return self.queue(httpx.Response(status_code, json=data))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = json.loads(request.content.decode("utf-8"))
        self.payloads.append(payload)
        if self._queue:
            item = self._queue.pop(0)
        elif self.default is not None:
            item = self.default
        else:
            raise AssertionError(f"Unexpected request: {payload}")
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return await item(payload)
        return item


class MutableTokenProvider:
    def __init__(self, token: Optional[str] = TOKEN):
        self.token = token
        self.calls = 0

    def get_session(self):
        self.calls += 1
        return self.token


@pytest.fixture
def endpoint():
    return FakeEndpoint()


@pytest.fixture
async def client(endpoint):
    client = AssistantClient(ENDPOINT_URL, ANON_KEY, transport=httpx.MockTransport(endpoint))
    yield client
    await client.aclose()


@pytest.fixture
def tokens():
    return MutableTokenProvider()


@pytest.fixture
def session():
    return AssistantSession(actor_id="owner-1")


@pytest.fixture
def make_core(client, tokens, session):
    """Build an InteractionCore wired to the fake endpoint.

    Usage:
        core = make_core(eligible=False)
    """
    def _make(eligible=True, token_provider=None, notifier=None, bound_session=session):
        return InteractionCore(
            client,
            token_provider or tokens,
            eligible=eligible,
            session=bound_session,
            notifier=notifier,
        )
    return _make


@pytest.fixture
def summary_payload():
    return {
        "summary": "Customers love the coffee but complain about waiting times.",
        "topIssues": ["Slow service", "Noisy room", "Few vegan options"],
        "topStrengths": ["Coffee quality", "Friendly staff", "Location"],
        "generatedAt": "2026-10-01T09:30:00Z",
        "fromCache": True,
    }

