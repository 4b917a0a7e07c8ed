"""Shared fakes for the dialogue tests: no Discord, no network."""

from __future__ import annotations

import asyncio
import dataclasses
from types import SimpleNamespace

import pytest

from core.config import load_config
from core.context import ContextTree
from core.events import InboundMessage, ReplyTarget, Transport
from core.handler import DialogueController
from core.registry import ConversationRegistry

PROMPT = "hold the line"
MODEL = "test-model"
BOT_ID = 42
BOT_NAME = "Commander Bot"

_DEFAULT = object()


def make_response(*texts: str):
    """Minimal stand-in for a ChatCompletion object."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=t)) for t in texts]
    )


def make_event(
    message_id=1,
    content="hello",
    *,
    conversation_id=100,
    author_id=7,
    author_name="Jane Doe",
    is_private=False,
    reply_to: ReplyTarget | None = None,
) -> InboundMessage:
    return InboundMessage(
        conversation_id=conversation_id,
        message_id=message_id,
        author_id=author_id,
        author_name=author_name,
        content=content,
        bot_id=BOT_ID,
        bot_name=BOT_NAME,
        is_private=is_private,
        reply_to=reply_to,
    )


class FakeTransport(Transport):
    def __init__(self, first_id: int = 1000, fail: bool = False, max_length: int | None = None):
        self.max_length = max_length
        self.replies: list[tuple[str, object]] = []
        self.typing = 0
        self._next_id = first_id
        self.fail = fail

    async def send_reply(self, text, reply_to_id):
        if self.fail:
            raise RuntimeError("send failed")
        self.replies.append((text, reply_to_id))
        new_id = self._next_id
        self._next_id += 1
        return new_id

    async def send_typing(self):
        self.typing += 1


class FakeCompletions:
    def __init__(self, response=_DEFAULT, error: Exception | None = None, delay: float = 0.0):
        self.response = make_response("For democracy!") if response is _DEFAULT else response
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def submit(self, model, messages, max_tokens=None):
        self.calls.append({"model": model, "messages": messages, "max_tokens": max_tokens})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def config():
    return dataclasses.replace(
        load_config({}),
        system_prompt=PROMPT,
        chat_model=MODEL,
        typing_interval=0.01,
    )


@pytest.fixture
def registry():
    return ConversationRegistry(tree_factory=lambda: ContextTree(PROMPT, MODEL))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def controller(registry, completions, config):
    # rng above the default 0.5 threshold: group messages get answered
    return DialogueController(registry, completions, config=config, rng=lambda: 0.9)
