"""
Chat tutor — the contract between the chat panel and a text-generation API.

The panel sends a message and receives the reply as incremental chunks of
text. Which API produces the chunks is up to the ChatTransport plugged in;
this module keeps the conversation history and the stop/reset
behaviour of the panel. GeminiTransport streams from Google's Gemini chat
API (install the `gemini` extra for the google-genai client).
"""

from __future__ import annotations

import itertools
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an expert instructor in deep reinforcement learning. Explain "
    "how Deep Q-Networks work in plain language: the Bellman equation, the "
    "network architecture, experience replay and target networks. Keep an "
    "encouraging, professional tone and answer concisely. For code "
    "questions, give short Python/PyTorch pseudo-code."
)

WELCOME_TEXT = (
    "Hi! I'm your DQN study assistant. What would you like to know about "
    "Deep Q-Networks?\n\nYou could ask:\n"
    "- **What is experience replay?**\n"
    "- **How does DQN differ from Q-Learning?**\n"
    "- **Show me a PyTorch code example**"
)

ERROR_TEXT = "Something went wrong, please try again later."
MISSING_KEY_TEXT = "Error: cannot reach the AI service, please check the API key."

GEMINI_MODEL = "gemini-2.5-flash"


@dataclass
class Message:
    """One chat message."""
    id: str
    role: str          # "user" or "model"
    text: str
    timestamp: float = field(default_factory=time.time)


class ChatTransport(Protocol):
    """Anything that can stream a reply given the history and a new message."""

    def stream(self, history: Sequence[Message], text: str) -> Iterator[str]:
        ...


class ChatSession:
    """
    Conversation state for the chat panel.

    send() is a generator: iterate it to receive the reply chunk by chunk.
    The model message is appended to the history on the first chunk and
    grows as more arrive. stop() ends the current reply after the chunk
    being processed.
    """

    def __init__(self, transport: ChatTransport):
        self.transport = transport
        self._ids = itertools.count(1)
        self.messages: List[Message] = []
        self._stop_requested = False
        self.is_loading = False
        self.reset()

    def _new_id(self) -> str:
        return str(next(self._ids))

    def reset(self) -> None:
        """Drop the conversation and start again from the welcome message."""
        self.messages = [Message(id="welcome", role="model", text=WELCOME_TEXT)]
        self._stop_requested = False
        reset_transport = getattr(self.transport, "reset", None)
        if reset_transport is not None:
            reset_transport()

    def stop(self) -> None:
        self._stop_requested = True

    def send(self, text: str) -> Iterator[str]:
        text = text.strip()
        if not text or self.is_loading:
            return

        history = list(self.messages)
        self.messages.append(Message(id=self._new_id(), role="user", text=text))
        self.is_loading = True
        self._stop_requested = False
        reply: Optional[Message] = None

        try:
            try:
                for chunk in self.transport.stream(history, text):
                    if self._stop_requested:
                        break
                    if not chunk:
                        continue
                    if reply is None:
                        reply = Message(id=self._new_id(), role="model",
                                        text=chunk)
                        self.messages.append(reply)
                    else:
                        reply.text += chunk
                    yield chunk
            except Exception:
                logger.exception("chat transport failed")
                if reply is None:
                    reply = Message(id=self._new_id(), role="model", text="")
                    self.messages.append(reply)
                reply.text += ERROR_TEXT
                yield ERROR_TEXT
        finally:
            self.is_loading = False
            self._stop_requested = False

    def ask(self, text: str) -> str:
        """Send a message and return the whole reply."""
        return "".join(self.send(text))


class GeminiTransport:
    """
    ChatTransport backed by the google-genai client.

    The chat is created on first use with the tutor's system instruction
    and keeps its own history, so the history passed to stream() is not
    re-sent. Without an API key (argument, GEMINI_API_KEY or API_KEY) the
    reply is a single MISSING_KEY_TEXT chunk.

    Parameters
    ----------
    api_key : Optional[str]
        Gemini API key; read from the environment when omitted.
    model : str
        Model name. Default "gemini-2.5-flash".
    client : Optional[Any]
        A ready genai.Client; built from api_key when omitted.
    """

    def __init__(self, api_key: Optional[str] = None,
                 model: str = GEMINI_MODEL,
                 client: Optional[Any] = None,
                 system_instruction: str = SYSTEM_INSTRUCTION):
        self.api_key = api_key
        self.model = model
        self.system_instruction = system_instruction
        self._client = client
        self._chat: Optional[Any] = None

    def _ensure_chat(self) -> Optional[Any]:
        if self._chat is not None:
            return self._chat
        if self._client is None:
            api_key = (self.api_key or os.environ.get("GEMINI_API_KEY")
                       or os.environ.get("API_KEY"))
            if not api_key:
                logger.error("Gemini API key is missing")
                return None
            from google import genai
            self._client = genai.Client(api_key=api_key)
        self._chat = self._client.chats.create(
            model=self.model,
            config={"system_instruction": self.system_instruction},
        )
        return self._chat

    def reset(self) -> None:
        """Forget the server-side conversation; the next message starts anew."""
        self._chat = None

    def stream(self, history: Sequence[Message], text: str) -> Iterator[str]:
        chat = self._ensure_chat()
        if chat is None:
            yield MISSING_KEY_TEXT
            return
        for chunk in chat.send_message_stream(text):
            if chunk.text:
                yield chunk.text
