"""Tests for feedback_assistant.messages."""

import pytest

from feedback_assistant.messages import (
    ChatMessage,
    Transcript,
    messages_payload,
)


class TestChatMessage:
    def test_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            ChatMessage("system", "You are a bot")

    def test_payload_shape(self):
        assert ChatMessage.user("hola").to_payload() == {"role": "user", "content": "hola"}


class TestMessagesPayload:
    def test_payload_preserves_order(self):
        messages = [ChatMessage.user("a"), ChatMessage.assistant("b"), ChatMessage.user("a")]
        assert [m["content"] for m in messages_payload(messages)] == ["a", "b", "a"]


class TestTranscriptTransaction:
    def test_apply_is_visible_immediately(self):
        transcript = Transcript([ChatMessage.user("first")])
        tx = transcript.begin(ChatMessage.user("second"))
        snapshot = tx.apply()

        assert len(transcript) == 2
        assert snapshot == transcript.messages

    def test_revert_restores_exact_sequence(self):
        original = (ChatMessage.user("q"), ChatMessage.assistant("r"))
        transcript = Transcript(original)
        tx = transcript.begin(ChatMessage.user("q"))
        tx.apply()
        tx.revert()

        assert transcript.messages == original

    def test_context_manager_reverts_on_error(self):
        transcript = Transcript()
        with pytest.raises(RuntimeError):
            with transcript.begin(ChatMessage.user("boom")):
                raise RuntimeError("failed")
        assert len(transcript) == 0

    def test_commit_keeps_message(self):
        transcript = Transcript()
        with transcript.begin(ChatMessage.user("ok")):
            pass
        assert transcript.messages == (ChatMessage.user("ok"),)

    def test_revert_after_clear_keeps_cleared_transcript(self):
        transcript = Transcript([ChatMessage.user("old")])
        tx = transcript.begin(ChatMessage.user("new"))
        tx.apply()
        transcript.clear()
        tx.revert()

        assert len(transcript) == 0

    def test_double_apply_raises(self):
        tx = Transcript().begin(ChatMessage.user("x"))
        tx.apply()
        with pytest.raises(RuntimeError):
            tx.apply()
