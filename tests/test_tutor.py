"""Tests for the chat session contract."""

import os
import unittest
from types import SimpleNamespace
from unittest.mock import patch

from dqn_explainer.tutor import (
    ERROR_TEXT, MISSING_KEY_TEXT, SYSTEM_INSTRUCTION, ChatSession, GeminiTransport,
)


class ScriptedTransport:
    """Streams a fixed reply and remembers what it was asked."""

    def __init__(self, chunks, fail_after=None):
        self.chunks = chunks
        self.fail_after = fail_after
        self.calls = []

    def stream(self, history, text):
        self.calls.append((list(history), text))
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise ConnectionError("network down")
            yield chunk


class TestChatSession(unittest.TestCase):

    def test_starts_with_welcome(self):
        session = ChatSession(ScriptedTransport([]))
        self.assertEqual(len(session.messages), 1)
        self.assertEqual(session.messages[0].role, "model")

    def test_streams_reply(self):
        transport = ScriptedTransport(["Experience ", "replay ", "stores..."])
        session = ChatSession(transport)
        chunks = list(session.send("What is experience replay?"))
        self.assertEqual(chunks, ["Experience ", "replay ", "stores..."])
        self.assertEqual([m.role for m in session.messages],
                         ["model", "user", "model"])
        self.assertEqual(session.messages[-1].text,
                         "Experience replay stores...")
        history, text = transport.calls[0]
        self.assertEqual(text, "What is experience replay?")
        self.assertEqual(len(history), 1)
        self.assertFalse(session.is_loading)

    def test_blank_message_ignored(self):
        transport = ScriptedTransport(["x"])
        session = ChatSession(transport)
        self.assertEqual(session.ask("   "), "")
        self.assertEqual(len(session.messages), 1)
        self.assertEqual(transport.calls, [])

    def test_stop(self):
        session = ChatSession(ScriptedTransport(["a", "b", "c"]))
        received = []
        for chunk in session.send("hi"):
            received.append(chunk)
            session.stop()
        self.assertEqual(received, ["a"])
        self.assertEqual(session.messages[-1].text, "a")

    def test_transport_failure(self):
        session = ChatSession(ScriptedTransport(["partial"], fail_after=0))
        with self.assertLogs("dqn_explainer.tutor", level="ERROR"):
            reply = session.ask("hello")
        self.assertEqual(reply, ERROR_TEXT)
        self.assertEqual(session.messages[-1].text, ERROR_TEXT)

    def test_reset(self):
        session = ChatSession(ScriptedTransport(["ok"]))
        session.ask("hello")
        session.reset()
        self.assertEqual(len(session.messages), 1)


class FakeChat:
    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.sent = []

    def send_message_stream(self, message):
        self.sent.append(message)
        for text in self.chunks:
            yield SimpleNamespace(text=text)
        if self.error is not None:
            raise self.error


class FakeClient:
    """Stands in for genai.Client: client.chats.create(...) -> chat."""

    def __init__(self, chunks=(), error=None):
        self.created = []
        self.chats = SimpleNamespace(create=self._create)
        self._chunks = list(chunks)
        self._error = error

    def _create(self, **kwargs):
        self.created.append(kwargs)
        return FakeChat(self._chunks, self._error)


class TestGeminiTransport(unittest.TestCase):

    def test_chat_created_with_model_and_instruction(self):
        client = FakeClient(["Q", "-learning"])
        session = ChatSession(GeminiTransport(client=client))
        self.assertEqual(session.ask("What is Q?"), "Q-learning")
        self.assertEqual(len(client.created), 1)
        self.assertEqual(client.created[0]["model"], "gemini-2.5-flash")
        self.assertEqual(client.created[0]["config"],
                         {"system_instruction": SYSTEM_INSTRUCTION})

    def test_empty_chunks_skipped(self):
        client = FakeClient(["A target ", None, "", "network."])
        transport = GeminiTransport(client=client)
        chunks = list(transport.stream([], "What is a target network?"))
        self.assertEqual(chunks, ["A target ", "network."])

    def test_chat_kept_between_messages(self):
        client = FakeClient(["ok"])
        session = ChatSession(GeminiTransport(client=client))
        session.ask("one")
        session.ask("two")
        self.assertEqual(len(client.created), 1)

    def test_reset_starts_new_chat(self):
        client = FakeClient(["ok"])
        session = ChatSession(GeminiTransport(client=client))
        session.ask("one")
        session.reset()
        session.ask("two")
        self.assertEqual(len(client.created), 2)

    def test_missing_key(self):
        with patch.dict(os.environ, {}, clear=True):
            session = ChatSession(GeminiTransport())
            with self.assertLogs("dqn_explainer.tutor", level="ERROR"):
                reply = session.ask("hello")
        self.assertEqual(reply, MISSING_KEY_TEXT)
        self.assertEqual(session.messages[-1].text, MISSING_KEY_TEXT)

    def test_stream_failure(self):
        client = FakeClient(["partial "], error=ConnectionError("offline"))
        session = ChatSession(GeminiTransport(client=client))
        with self.assertLogs("dqn_explainer.tutor", level="ERROR"):
            reply = session.ask("hello")
        self.assertEqual(reply, "partial " + ERROR_TEXT)


if __name__ == "__main__":
    unittest.main()
