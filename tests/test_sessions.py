"""Tests for feedback_assistant.assistant.sessions."""

import asyncio

import pytest

from feedback_assistant.assistant import (
    CancellationToken,
    ChainedTokenProvider,
    EnvTokenProvider,
    FileTokenProvider,
    RequestAbandonedError,
    StaticTokenProvider,
)
from feedback_assistant.assistant.sessions import resolve_token


class _AsyncProvider:
    def __init__(self, token):
        self.token = token

    async def get_session(self):
        return self.token


class TestProviders:
    async def test_static_blank_is_no_session(self):
        assert await resolve_token(StaticTokenProvider("   ")) is None

    async def test_env_provider(self, monkeypatch):
        monkeypatch.setenv("FEEDBACK_ASSISTANT_TOKEN", " abc \n")
        assert await resolve_token(EnvTokenProvider()) == "abc"

    async def test_file_provider_rereads_every_call(self, tmp_path):
        token_file = tmp_path / "token"
        provider = FileTokenProvider(token_file)
        assert await resolve_token(provider) is None

        token_file.write_text("first\n", encoding="utf-8")
        assert await resolve_token(provider) == "first"

        token_file.write_text("second", encoding="utf-8")
        assert await resolve_token(provider) == "second"

    async def test_file_provider_undecodable_file_is_no_session(self, tmp_path):
        token_file = tmp_path / "token"
        token_file.write_bytes(b"\xff\xfe\xfa bad")
        assert await resolve_token(FileTokenProvider(token_file)) is None

    async def test_chained_provider_accepts_async_members(self):
        provider = ChainedTokenProvider(StaticTokenProvider(None), _AsyncProvider("from-async"))
        assert await resolve_token(provider) == "from-async"


class TestCancellationToken:
    async def test_guard_returns_result(self):
        token = CancellationToken()

        async def work():
            return 42

        assert await token.guard(work()) == 42

    async def test_guard_raises_when_already_cancelled(self):
        token = CancellationToken()
        token.cancel()

        async def work():
            return 1

        coro = work()
        with pytest.raises(RequestAbandonedError):
            await token.guard(coro)
        coro.close()

    async def test_cancel_abandons_pending_work(self):
        token = CancellationToken()
        started = asyncio.Event()
        finished = False

        async def slow():
            nonlocal finished
            started.set()
            await asyncio.sleep(60)
            finished = True

        guarded = asyncio.ensure_future(token.guard(slow()))
        await started.wait()
        token.cancel()

        with pytest.raises(RequestAbandonedError):
            await guarded
        assert not finished
        assert token.cancelled

    async def test_work_errors_propagate(self):
        token = CancellationToken()

        async def boom():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await token.guard(boom())
