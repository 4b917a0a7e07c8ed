"""
core/registry.py
----------------
Process-wide map of conversation id -> ContextTree.

Trees are created lazily on first access. By default the map only grows (context
lives for the process lifetime). Set a size cap and/or an idle TTL to turn it into
an evicting cache; the clock is injectable for tests.
"""

from __future__ import annotations
from collections import OrderedDict
from typing import Callable, Hashable, Optional
import logging
import time

from core.context import ContextTree
from core.errors import MissingConversationId

log = logging.getLogger(__name__)


class ConversationRegistry:
    def __init__(
        self,
        max_conversations: int = 0,
        ttl: float = 0,
        clock: Callable[[], float] = time.monotonic,
        tree_factory: Callable[[], ContextTree] = ContextTree,
    ):
        self.max_conversations = max_conversations
        self.ttl = ttl
        self._clock = clock
        self._tree_factory = tree_factory
        # conversation id -> (tree, last access); ordered by last access
        self._trees: "OrderedDict[Hashable, tuple[ContextTree, float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._trees)

    def __contains__(self, conversation_id: Hashable) -> bool:
        return conversation_id in self._trees

    def get(self, conversation_id: Hashable) -> Optional[ContextTree]:
        """Existing tree or None; does not create or refresh."""
        entry = self._trees.get(conversation_id)
        return entry[0] if entry else None

    def get_or_create(self, conversation_id: Hashable) -> ContextTree:
        if conversation_id is None or conversation_id == "":
            raise MissingConversationId("No conversation id specified to get context tree")

        now = self._clock()
        self._expire(now)

        entry = self._trees.get(conversation_id)
        if entry is None:
            tree = self._tree_factory()
            log.debug("New context tree for conversation %s", conversation_id)
        else:
            tree = entry[0]

        self._trees[conversation_id] = (tree, now)
        self._trees.move_to_end(conversation_id)

        if self.max_conversations > 0:
            while len(self._trees) > self.max_conversations:
                evicted, _ = self._trees.popitem(last=False)
                log.info("Evicted context tree for conversation %s (cap %d)", evicted, self.max_conversations)

        return tree

    def discard(self, conversation_id: Hashable) -> None:
        self._trees.pop(conversation_id, None)

    def _expire(self, now: float) -> None:
        if self.ttl <= 0:
            return
        # oldest access first, so stop at the first fresh entry
        while self._trees:
            conversation_id, (_, last_seen) = next(iter(self._trees.items()))
            if now - last_seen <= self.ttl:
                break
            self._trees.popitem(last=False)
            log.info("Expired idle context tree for conversation %s", conversation_id)
