"""Tests for the conversation -> context tree registry."""

from __future__ import annotations

import pytest

from core.context import ContextTree
from core.errors import MissingConversationId
from core.registry import ConversationRegistry


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _registry(**kwargs) -> ConversationRegistry:
    return ConversationRegistry(tree_factory=lambda: ContextTree("p", "m"), **kwargs)


class TestGetOrCreate:
    def test_creates_lazily_and_reuses(self):
        reg = _registry()
        assert len(reg) == 0
        tree = reg.get_or_create(1)
        assert isinstance(tree, ContextTree)
        assert reg.get_or_create(1) is tree
        assert len(reg) == 1

    def test_conversations_are_isolated(self):
        reg = _registry()
        reg.get_or_create("a").append("user", "hi", 1)
        assert not reg.get_or_create("b").exists(message_id=1)

    @pytest.mark.parametrize("conversation_id", [None, ""])
    def test_missing_id_fails_fast(self, conversation_id):
        reg = _registry()
        with pytest.raises(MissingConversationId):
            reg.get_or_create(conversation_id)
        assert len(reg) == 0

    def test_zero_is_a_valid_id(self):
        reg = _registry()
        reg.get_or_create(0)
        assert 0 in reg

    def test_unbounded_by_default(self):
        reg = _registry()
        for i in range(1, 501):
            reg.get_or_create(i)
        assert len(reg) == 500


class TestLookupHelpers:
    def test_get_does_not_create(self):
        reg = _registry()
        assert reg.get(1) is None
        assert 1 not in reg
        tree = reg.get_or_create(1)
        assert reg.get(1) is tree

    def test_discard(self):
        reg = _registry()
        reg.get_or_create(1)
        reg.discard(1)
        reg.discard(2)
        assert 1 not in reg


class TestEviction:
    def test_cap_evicts_least_recently_used(self):
        reg = _registry(max_conversations=2)
        reg.get_or_create(1)
        reg.get_or_create(2)
        reg.get_or_create(1)  # refresh 1
        reg.get_or_create(3)
        assert 1 in reg and 3 in reg
        assert 2 not in reg

    def test_ttl_expires_idle_conversations(self):
        clock = _Clock()
        reg = _registry(ttl=60, clock=clock)
        old = reg.get_or_create(1)
        clock.now = 30
        reg.get_or_create(2)
        clock.now = 61
        reg.get_or_create(2)
        assert 1 not in reg
        assert 2 in reg
        assert reg.get_or_create(1) is not old

    def test_access_keeps_conversation_alive(self):
        clock = _Clock()
        reg = _registry(ttl=60, clock=clock)
        tree = reg.get_or_create(1)
        for t in (50, 100, 150):
            clock.now = t
            assert reg.get_or_create(1) is tree
