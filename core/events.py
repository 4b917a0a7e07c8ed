"""
core/events.py
--------------
Transport-neutral view of a chat message, and the two things the dialogue handler
needs from the chat platform: reply in-thread and show "typing".
bot.py adapts Discord to this.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Hashable, Optional


@dataclass(frozen=True)
class ReplyTarget:
    """The message an inbound message replies to."""
    message_id: Hashable
    author_id: Hashable
    author_name: str = ""
    content: str = ""


@dataclass(frozen=True)
class InboundMessage:
    conversation_id: Hashable
    message_id: Hashable
    author_id: Hashable
    author_name: str
    content: str                # text or caption, "" when the message has neither
    bot_id: Hashable
    bot_name: str
    is_private: bool = False
    reply_to: Optional[ReplyTarget] = None

    @property
    def from_bot(self) -> bool:
        return self.author_id == self.bot_id

    @property
    def is_reply_to_bot(self) -> bool:
        return self.reply_to is not None and self.reply_to.author_id == self.bot_id


class Transport(ABC):
    """Outbound side of the chat platform, bound to one inbound message."""

    # longest text a single reply may carry (None = no limit)
    max_length: Optional[int] = None

    @abstractmethod
    async def send_reply(self, text: str, reply_to_id: Hashable) -> Optional[Hashable]:
        """Send `text` as a reply; return the new message's id (None if unknown)."""

    @abstractmethod
    async def send_typing(self) -> None:
        """Show a typing indicator in the conversation."""
