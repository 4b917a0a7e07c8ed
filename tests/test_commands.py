"""Tests for text command parsing and the command handlers."""

from __future__ import annotations

import pytest

from commands.help import HELP_TEXT, handle_help
from commands.sir import command_text_for, handle_answer_command, parse_command
from conftest import FakeTransport, make_event


class TestParseCommand:
    @pytest.mark.parametrize(
        "content, expected",
        [
            ("/sir hold the line", ("sir", "hold the line")),
            ("!sir   spaced  ", ("sir", "spaced")),
            ("/sir", ("sir", "")),
            ("/SIR@CommanderBot report", ("sir", "report")),
            ("/start", ("start", "")),
            ("/help", ("help", "")),
        ],
    )
    def test_commands(self, content, expected):
        assert parse_command(content) == expected

    @pytest.mark.parametrize("content", ["", None, "hello /sir", "/", "/ sir", "sir, yes sir"])
    def test_not_commands(self, content):
        assert parse_command(content) is None


class TestCommandText:
    def test_start_asks_for_greeting(self):
        assert command_text_for("start", "") == "give a greeting"
        assert command_text_for("start", "troops") == "troops give a greeting"

    def test_sir_unchanged(self):
        assert command_text_for("sir", "report") == "report"


class TestHandlers:
    @pytest.mark.asyncio
    async def test_start_command_reaches_controller(self, controller, completions, transport):
        result = await handle_answer_command(controller, make_event(1, "/start"), "start", "", transport)
        assert result.ok
        assert completions.calls[0]["messages"][-1]["content"] == "sir, give a greeting"

    @pytest.mark.asyncio
    async def test_bare_sir_is_noop(self, controller, completions, transport):
        assert await handle_answer_command(controller, make_event(1, "/sir"), "sir", "", transport) is None
        assert completions.calls == []

    @pytest.mark.asyncio
    async def test_help_replies(self):
        transport = FakeTransport()
        await handle_help(transport, 5)
        assert transport.replies == [(HELP_TEXT, 5)]

    @pytest.mark.asyncio
    async def test_help_send_failure_swallowed(self):
        await handle_help(FakeTransport(fail=True), 5)
