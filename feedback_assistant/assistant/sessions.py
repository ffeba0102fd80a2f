"""Session token providers and cooperative cancellation."""
from __future__ import annotations

import asyncio
import inspect
import os
from pathlib import Path
from typing import Awaitable, Optional, Protocol, TypeVar, Union, runtime_checkable

from .errors import RequestAbandonedError

T = TypeVar("T")

DEFAULT_TOKEN_ENV = "FEEDBACK_ASSISTANT_TOKEN"


@runtime_checkable
class SessionTokenProvider(Protocol):
    """Supplies the bearer token of the current actor, or None when signed out."""

    def get_session(self) -> Union[Optional[str], Awaitable[Optional[str]]]:
        ...


class StaticTokenProvider:
    def __init__(self, token: Optional[str]) -> None:
        self._token = token

    def get_session(self) -> Optional[str]:
        return _normalize(self._token)


class EnvTokenProvider:
    def __init__(self, variable: str = DEFAULT_TOKEN_ENV) -> None:
        self.variable = variable

    def get_session(self) -> Optional[str]:
        return _normalize(os.getenv(self.variable))


class FileTokenProvider:
    """Reads the token file on every call so external refreshes are picked up."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def get_session(self) -> Optional[str]:
        try:
            contents = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        return _normalize(contents)


class ChainedTokenProvider:
    """Returns the first token any provider yields."""

    def __init__(self, *providers: SessionTokenProvider) -> None:
        self._providers = providers

    async def get_session(self) -> Optional[str]:
        for provider in self._providers:
            token = await resolve_token(provider)
            if token:
                return token
        return None


async def resolve_token(provider: SessionTokenProvider) -> Optional[str]:
    result = provider.get_session()
    if inspect.isawaitable(result):
        result = await result
    return _normalize(result)


def _normalize(token: Optional[str]) -> Optional[str]:
    if not isinstance(token, str):
        return None
    stripped = token.strip()
    return stripped or None


class CancellationToken:
    """Fires once; awaitables run through ``guard`` are abandoned when it does."""

    def __init__(self) -> None:
        self._event: Optional[asyncio.Event] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestAbandonedError("Session ended before the request completed")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        self.raise_if_cancelled()
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if not task.done() or self._cancelled:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise RequestAbandonedError("Session ended before the request completed")
        return task.result()
