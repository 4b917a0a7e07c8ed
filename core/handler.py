"""
core/handler.py
---------------
Dialogue handler: turns inbound chat messages into completion requests.

What this file does:
- Resolves the conversation's ContextTree through the registry.
- Tracks the inbound message (and, when needed, the message it replies to).
- Builds the bounded context window and asks the completion client for an answer.
- Replies in-thread and tracks the bot's reply, keyed by the reply's own message id,
  so later replies to the bot resolve their history.

Failures of the completion call or of the send are logged and swallowed: the user
simply gets no answer and nothing is tracked for that turn. The outcome is still
returned as a TurnResult.
"""

from __future__ import annotations
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Optional
import asyncio
import logging
import random

from core.config import Config, cfg
from core.context import ContextTree, Role
from core.events import InboundMessage, Transport
from core.openai_client import CompletionClient, first_choice_text
from core.registry import ConversationRegistry

log = logging.getLogger(__name__)

HONORIFIC = "sir, "


class TurnStatus(str, Enum):
    REPLIED = "replied"
    NO_RESPONSE = "no_response"            # completion returned nothing
    NO_CHOICES = "no_choices"              # completion had no usable candidate
    COMPLETION_FAILED = "completion_failed"
    SEND_FAILED = "send_failed"


@dataclass(frozen=True)
class TurnResult:
    status: TurnStatus
    text: Optional[str] = None
    reply_message_id: Optional[Hashable] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is TurnStatus.REPLIED


class DialogueController:
    def __init__(
        self,
        registry: ConversationRegistry,
        completions: CompletionClient,
        config: Config = cfg,
        rng: Callable[[], float] = random.random,
    ):
        self.registry = registry
        self.completions = completions
        self.config = config
        self._rng = rng

    # -------- Gates --------

    def should_answer(self) -> bool:
        """Sampling gate for ambient messages outside private conversations."""
        return self._rng() > self.config.probability

    # -------- Entry points --------

    async def on_reply_to_bot(self, event: InboundMessage, transport: Transport) -> Optional[TurnResult]:
        """Answer a message that replies to one of the bot's own messages."""
        if not event.is_reply_to_bot or not event.content:
            return None

        log.info("Commander will reply (conversation %s, message %s)", event.conversation_id, event.message_id)

        tree = self.registry.get_or_create(event.conversation_id)
        prev_message_id: Optional[Hashable] = event.reply_to.message_id

        # Bot messages sent before this process held state: recover them from the reply
        if not tree.exists(message_id=prev_message_id):
            if event.reply_to.content:
                tree.append(Role.ASSISTANT, event.reply_to.content, prev_message_id, name=event.bot_name)
            else:
                prev_message_id = None

        tree.append(Role.USER, event.content, event.message_id, prev_message_id, name=event.author_name)

        context = tree.get_context(event.message_id, self.config.context_limit)
        return await self._reply_from_context(event, transport, tree, context)

    async def on_command_request(
        self, event: InboundMessage, command_text: str, transport: Transport
    ) -> Optional[TurnResult]:
        """Answer an explicit command; a command sent as a reply continues that message's chain."""
        if not command_text:
            return None

        tree = self.registry.get_or_create(event.conversation_id)
        prev_message_id: Optional[Hashable] = None

        target = event.reply_to
        if target is not None:
            prev_message_id = target.message_id
            if target.content and not tree.exists(message_id=target.message_id):
                role = Role.ASSISTANT if (event.from_bot or target.author_id == event.bot_id) else Role.USER
                tree.append(role, target.content, target.message_id, name=target.author_name)

        tree.append(
            Role.USER,
            HONORIFIC + command_text,
            event.message_id,
            prev_message_id,
            name=event.author_name,
        )

        limit = self.config.command_context_limit if prev_message_id is not None else self.config.context_limit
        context = tree.get_context(event.message_id, limit)
        return await self._reply_from_context(event, transport, tree, context)

    async def on_ambient_message(self, event: InboundMessage, transport: Transport) -> Optional[TurnResult]:
        """Maybe join in on a plain message (always in private conversations)."""
        if event.from_bot or not event.content:
            return None
        if not event.is_private and not self.should_answer():
            return None

        log.info("Commander will reply (conversation %s, message %s)", event.conversation_id, event.message_id)

        tree = self.registry.get_or_create(event.conversation_id)
        if not tree.exists(message_id=event.message_id):
            tree.append(Role.USER, event.content, event.message_id, name=event.author_name)

        context = tree.get_context(event.message_id, self.config.context_limit)
        return await self._reply_from_context(event, transport, tree, context)

    # -------- Diagnostics --------

    def export(self, conversation_id: Hashable, message_id: Hashable) -> List[Dict[str, Any]]:
        """Raw records of the chain ending at `message_id` ([] if unknown)."""
        tree = self.registry.get(conversation_id)
        return tree.get_raw_context(message_id) if tree else []

    # -------- Completion turn --------

    async def _keep_typing(self, transport: Transport) -> None:
        while True:
            await asyncio.sleep(self.config.typing_interval)
            await self._send_typing(transport)

    async def _send_typing(self, transport: Transport) -> None:
        try:
            await transport.send_typing()
        except Exception as e:
            log.warning("Typing indicator failed: %s", e)

    async def _reply_from_context(
        self,
        event: InboundMessage,
        transport: Transport,
        tree: ContextTree,
        context: List[Dict[str, str]],
    ) -> TurnResult:
        prev_message_id = event.message_id

        await self._send_typing(transport)
        typing = asyncio.create_task(self._keep_typing(transport))
        try:
            response = await self.completions.submit(tree.model, context, self.config.max_tokens)
        except Exception as e:
            log.error("Error while getting completion: %s", e, exc_info=True)
            return TurnResult(TurnStatus.COMPLETION_FAILED, error=e)
        finally:
            typing.cancel()
            with suppress(asyncio.CancelledError):
                await typing

        if response is None:
            log.warning("No response to completion (conversation %s)", event.conversation_id)
            return TurnResult(TurnStatus.NO_RESPONSE)

        answer = first_choice_text(response)
        if not answer:
            log.warning("No choices for completion (conversation %s)", event.conversation_id)
            return TurnResult(TurnStatus.NO_CHOICES)

        if transport.max_length and len(answer) > transport.max_length:
            answer = answer[: transport.max_length]

        try:
            new_message_id = await transport.send_reply(answer, prev_message_id)
        except Exception as e:
            log.error("Failed to respond: %s", e, exc_info=True)
            return TurnResult(TurnStatus.SEND_FAILED, text=answer, error=e)

        if new_message_id is None:
            log.debug("Reply sent without a message id; not tracked")
            return TurnResult(TurnStatus.REPLIED, text=answer)

        tree.append(Role.ASSISTANT, answer, new_message_id, prev_message_id, name=event.bot_name)
        return TurnResult(TurnStatus.REPLIED, text=answer, reply_message_id=new_message_id)
