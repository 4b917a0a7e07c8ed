"""
core/context.py
---------------
Reply-tree context store for a single conversation.

Every tracked message is a ContextNode pointing back at the message it answers.
A ContextTree owns the nodes of one conversation (indexed by message id) plus a
synthetic system-prompt root, and rebuilds the linear history of any reply chain
so a completion request receives the right ordered context window.

Keeps memory only in runtime.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional
import logging
import re

from core.config import cfg

log = logging.getLogger(__name__)

DEFAULT_CONTEXT_LIMIT = 30
NAME_MAX_LEN = 64

_SPACES_RE = re.compile(r" +")
_NAME_STRIP_RE = re.compile(r"[^a-zA-Z0-9_]")

MessageId = Hashable


class Role(str, Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"


def sanitize_name(name: str | None) -> str | None:
    """
    Make a display name acceptable for the `name` field of a chat message.
    Spaces collapse to underscores, anything outside [a-zA-Z0-9_] is dropped and
    the result is cut to 64 chars. An empty result means "no name" (None).
    """
    if not name:
        return None
    cleaned = _NAME_STRIP_RE.sub("", _SPACES_RE.sub("_", name))[:NAME_MAX_LEN]
    return cleaned or None


@dataclass(frozen=True, eq=False)
class ContextNode:
    """One tracked message. Never mutated after construction."""
    role: Role
    content: str
    message_id: Optional[MessageId] = None
    prev_node: Optional["ContextNode"] = field(default=None, repr=False)
    name: Optional[str] = None
    model: Optional[str] = None

    def __post_init__(self):
        if not self.role:
            raise ValueError("ContextNode requires a role")
        if not self.content:
            raise ValueError("ContextNode requires non-empty content")
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "name", sanitize_name(self.name))

    def as_message(self) -> Dict[str, str]:
        """Minimal payload accepted by the chat completions API."""
        message = {"role": self.role.value, "content": self.content}
        if self.name:
            message["name"] = self.name
        return message

    def as_record(self) -> Dict[str, Any]:
        """Full node data, for diagnostics and export."""
        data: Dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
        }
        if self.message_id is not None:
            data["message_id"] = self.message_id
        if self.prev_node is not None and self.prev_node.message_id is not None:
            data["prev_message_id"] = self.prev_node.message_id
        if self.model:
            data["model"] = self.model
        if self.name:
            data["name"] = self.name
        return data


class ContextTree:
    """
    Forest of ContextNodes for one conversation.

    Nodes are looked up by message id. The root holds the system prompt and the
    model tag; it is never stored in the id map.
    """

    def __init__(self, system_prompt: str | None = None, model: str | None = None):
        self.nodes: Dict[MessageId, ContextNode] = {}
        self.root_node = ContextNode(
            role=Role.SYSTEM,
            content=system_prompt or cfg.system_prompt,
            model=model or cfg.chat_model,
        )

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def model(self) -> str | None:
        return self.root_node.model

    def get_node(self, message_id: MessageId | None) -> ContextNode | None:
        if message_id is None:
            return None
        return self.nodes.get(message_id)

    def exists(self, node: ContextNode | None = None, message_id: MessageId | None = None) -> bool:
        """Check by the node's own id if a node is given, else by `message_id`."""
        if node is not None:
            message_id = node.message_id
        return message_id is not None and message_id in self.nodes

    def append(
        self,
        role: Role | str,
        content: str,
        message_id: MessageId,
        prev_message_id: MessageId | None = None,
        name: str | None = None,
    ) -> None:
        """
        Add a node under `message_id`, linked to `prev_message_id` when that message
        is tracked, else to the root. An existing entry with the same id is replaced.
        """
        prev_node = self.get_node(prev_message_id) or self.root_node
        if message_id in self.nodes:
            log.debug("Replacing context node %s", message_id)
        self.nodes[message_id] = ContextNode(
            role=role,
            content=content,
            message_id=message_id,
            prev_node=prev_node,
            name=name,
        )

    def insert(self, node: ContextNode) -> None:
        """
        Store a pre-built node as-is. Its predecessor must be the root, a node
        already in this tree, or None (which starts an orphan chain).
        """
        if node.message_id is None:
            raise ValueError("Only nodes with a message_id can be stored")
        prev = node.prev_node
        if prev is not None and prev is not self.root_node and self.nodes.get(prev.message_id) is not prev:
            raise ValueError(f"Predecessor of {node.message_id!r} is not part of this tree")
        self.nodes[node.message_id] = node

    def get_context(self, message_id: MessageId | None, limit: int = DEFAULT_CONTEXT_LIMIT) -> List[Dict[str, str]]:
        """
        Ordered (oldest first) completion messages ending at `message_id`.

        The walk stops after limit + 1 nodes or when predecessors run out. If it
        did not end on the root (truncated or orphan chain) the system prompt is
        put in front.
        """
        last_node = self.get_node(message_id)
        if last_node is None:
            return [self.root_node.as_message()]

        context: List[Dict[str, str]] = []
        while last_node is not None and len(context) <= limit:
            context.insert(0, last_node.as_message())
            last_node = last_node.prev_node

        if not context:
            return [self.root_node.as_message()]

        if context[0]["role"] != self.root_node.role.value:
            context.insert(0, self.root_node.as_message())

        return context

    def get_raw_context(self, message_id: MessageId | None = None) -> List[Dict[str, Any]]:
        """Every ancestor's record, oldest first. Empty for unknown ids."""
        raw_context: List[Dict[str, Any]] = []
        last_node = self.get_node(message_id)
        while last_node is not None:
            raw_context.insert(0, last_node.as_record())
            last_node = last_node.prev_node
        return raw_context
