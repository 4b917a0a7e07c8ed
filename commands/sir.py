"""
commands/sir.py
---------------
Text commands that ask the commander for an answer:

- `/sir <text>`   request assistance; as a reply it continues that message's chain
- `/start`        same, with a greeting request appended

Commands are recognised with either `/` or `!` as prefix; a `@botname` suffix on
the command word is ignored.
"""

from __future__ import annotations
from typing import Optional, Tuple

from core.events import InboundMessage, Transport
from core.handler import DialogueController, TurnResult

PREFIXES = ("/", "!")
ANSWER_COMMANDS = {"sir", "start"}
GREETING_SUFFIX = " give a greeting"


def parse_command(content: str | None) -> Optional[Tuple[str, str]]:
    """'/sir hold the line' -> ('sir', 'hold the line'); None if not a command."""
    if not content or content[0] not in PREFIXES:
        return None
    head, _, rest = content[1:].partition(" ")
    name = head.split("@", 1)[0].strip().lower()
    if not name:
        return None
    return name, rest.strip()


def command_text_for(name: str, text: str) -> str:
    if name == "start":
        return (text + GREETING_SUFFIX).strip()
    return text


async def handle_answer_command(
    controller: DialogueController,
    event: InboundMessage,
    name: str,
    text: str,
    transport: Transport,
) -> Optional[TurnResult]:
    return await controller.on_command_request(event, command_text_for(name, text), transport)
