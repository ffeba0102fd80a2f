"""Chat message and transcript helpers shared by the assistant and the CLI."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

USER = "user"
ASSISTANT = "assistant"
CHAT_ROLES = (USER, ASSISTANT)


@dataclass(frozen=True)
class ChatMessage:
    """A single confirmed or provisional chat turn."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in CHAT_ROLES:
            raise ValueError(f"Unsupported chat role: {self.role!r}")
        if not isinstance(self.content, str):
            raise TypeError("content must be a string")

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(USER, content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(ASSISTANT, content)

    def to_payload(self) -> dict:
        return {"role": self.role, "content": self.content}


def messages_payload(messages: Iterable[ChatMessage]) -> List[dict]:
    return [message.to_payload() for message in messages]


class TranscriptTransaction:
    """Two-phase optimistic append: apply on enter, then commit or revert.

    ``revert`` restores the exact tuple captured before the append rather than
    re-deriving it from the current contents.
    """

    def __init__(self, transcript: "Transcript", message: ChatMessage) -> None:
        self._transcript = transcript
        self._message = message
        self._before: Optional[Tuple[ChatMessage, ...]] = None
        self._generation: Optional[int] = None
        self._after: Optional[Tuple[ChatMessage, ...]] = None
        self._closed = False

    @property
    def snapshot(self) -> Tuple[ChatMessage, ...]:
        """Transcript as it stood right after the optimistic append."""
        if self._after is None:
            raise RuntimeError("Transaction has not been applied")
        return self._after

    def apply(self) -> Tuple[ChatMessage, ...]:
        if self._before is not None:
            raise RuntimeError("Transaction already applied")
        self._before = self._transcript.messages
        self._generation = self._transcript.generation
        self._transcript._replace(self._before + (self._message,))
        self._after = self._transcript.messages
        return self._after

    def commit(self) -> None:
        self._closed = True

    def revert(self) -> None:
        if self._closed:
            return
        if self._before is None:
            raise RuntimeError("Transaction has not been applied")
        # a clear() since apply already dropped the provisional message
        if self._transcript.generation == self._generation:
            self._transcript._replace(self._before)
        self._closed = True

    def __enter__(self) -> "TranscriptTransaction":
        self.apply()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.revert()
        return False


class Transcript:
    """Insertion-ordered conversation; duplicates are kept."""

    def __init__(self, messages: Optional[Sequence[ChatMessage]] = None) -> None:
        self._messages: Tuple[ChatMessage, ...] = tuple(messages or ())
        self._generation = 0

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self._messages

    def append(self, message: ChatMessage) -> None:
        self._messages = self._messages + (message,)

    @property
    def generation(self) -> int:
        """Bumped by clear(); lets pending transactions detect a reset."""
        return self._generation

    def clear(self) -> None:
        self._messages = ()
        self._generation += 1

    def begin(self, message: ChatMessage) -> TranscriptTransaction:
        return TranscriptTransaction(self, message)

    def _replace(self, messages: Tuple[ChatMessage, ...]) -> None:
        self._messages = messages

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Transcript):
            return self._messages == other._messages
        return NotImplemented

    def __repr__(self) -> str:
        return f"Transcript({list(self._messages)!r})"
