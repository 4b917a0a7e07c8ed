# commands/help.py
import logging

from core.events import Transport

log = logging.getLogger(__name__)

HELP_TEXT = (
    "**🎖️ Commander Commands**\n"
    "`/sir <text>` — Request assistance from the commander\n"
    "`/start` — Get a greeting\n"
    "Reply to one of my messages to continue that conversation.\n"
    "`/help` — Show this help"
)


async def handle_help(transport: Transport, reply_to_id) -> None:
    try:
        await transport.send_reply(HELP_TEXT, reply_to_id)
    except Exception as e:
        log.error("Help reply error: %s", e)
