"""
bot.py
-------
Discord client entrypoint for the Commander bot.

What this file does:
- Initializes the Discord client (message content intent) and the /help slash command.
- Adapts Discord messages to core.events (InboundMessage + DiscordTransport).
- Routes every message:
  own messages are ignored -> text commands (/sir, /start, /help)
  -> replies to the bot -> ambient messages (sampled in servers, always in DMs).
- Delegates all context tracking and AI work to core/handler.py, not here.

Notes:
- For fast dev, set GUILD_ID in .env to sync the slash command instantly to one server.
- The conversation id is the channel (or thread) id, so every channel keeps its own reply tree.
"""


import logging

import discord
from discord import app_commands

from commands.help import HELP_TEXT, handle_help
from commands.sir import ANSWER_COMMANDS, handle_answer_command, parse_command
from core.config import Config, cfg, require_credentials
from core.context import ContextTree
from core.errors import ConfigError
from core.events import InboundMessage, ReplyTarget, Transport
from core.handler import DialogueController
from core.logging import setup_logging
from core.openai_client import CompletionClient, build_client
from core.registry import ConversationRegistry

log = logging.getLogger("bot")

DISCORD_MESSAGE_LIMIT = 2000

# -------------------------
# Discord adapter
# -------------------------

def _message_text(message: discord.Message) -> str:
    """Message text; attachment descriptions stand in for a caption."""
    if message.content:
        return message.content
    captions = [a.description for a in message.attachments if getattr(a, "description", None)]
    return "\n".join(captions)

def _display_name(user) -> str:
    return getattr(user, "display_name", None) or getattr(user, "name", "") or ""

async def _resolve_reply(message: discord.Message) -> discord.Message | None:
    ref = message.reference
    if ref is None or ref.message_id is None:
        return None
    if isinstance(ref.resolved, discord.Message):
        return ref.resolved
    if isinstance(ref.resolved, discord.DeletedReferencedMessage):
        return None
    try:
        return await message.channel.fetch_message(ref.message_id)
    except discord.HTTPException as e:
        log.warning("Could not fetch replied-to message %s: %s", ref.message_id, e)
        return None

async def inbound_from_discord(message: discord.Message, me: discord.ClientUser) -> InboundMessage:
    replied = await _resolve_reply(message)
    reply_to = None
    if replied is not None:
        reply_to = ReplyTarget(
            message_id=replied.id,
            author_id=replied.author.id,
            author_name=_display_name(replied.author),
            content=_message_text(replied),
        )
    return InboundMessage(
        conversation_id=message.channel.id,
        message_id=message.id,
        author_id=message.author.id,
        author_name=_display_name(message.author),
        content=_message_text(message),
        bot_id=me.id,
        bot_name=_display_name(me),
        is_private=message.guild is None,
        reply_to=reply_to,
    )

class DiscordTransport(Transport):
    """Replies in-thread to one inbound message."""

    max_length = DISCORD_MESSAGE_LIMIT

    def __init__(self, message: discord.Message):
        self.message = message

    async def send_reply(self, text: str, reply_to_id):
        if reply_to_id == self.message.id:
            try:
                sent = await self.message.reply(text, mention_author=False)
                return sent.id
            except discord.HTTPException as e:
                # message to reply to is gone: send without the reference
                log.debug("Reply failed (%s); sending without reference", e)
        sent = await self.message.channel.send(text)
        return sent.id

    async def send_typing(self) -> None:
        await self.message.channel.typing()

# -------------------------
# Client
# -------------------------

intents = discord.Intents.default()
intents.message_content = True   # read message text for commands, replies and ambient chat

class CommanderClient(discord.Client):
    """Discord client with an app commands tree and the dialogue handler attached."""
    def __init__(self, *, intents: discord.Intents, config: Config = cfg):
        super().__init__(intents=intents)
        self.config = config
        self.tree = app_commands.CommandTree(self)
        self.controller: DialogueController | None = None

    def build_controller(self) -> DialogueController:
        registry = ConversationRegistry(
            max_conversations=self.config.max_conversations,
            ttl=self.config.conversation_ttl,
            tree_factory=lambda: ContextTree(self.config.system_prompt, self.config.chat_model),
        )
        completions = CompletionClient(build_client(self.config))
        self.controller = DialogueController(registry, completions, config=self.config)
        return self.controller

client = CommanderClient(intents=intents)

# -------------------------
# Lifecycle
# -------------------------

@client.event
async def on_ready():
    """Sync slash commands."""
    try:
        if client.config.guild_id:
            guild = discord.Object(id=client.config.guild_id)
            client.tree.copy_global_to(guild=guild)
            synced = await client.tree.sync(guild=guild)
            log.info("Slash commands synced to guild %s: %d", guild.id, len(synced))
        else:
            synced = await client.tree.sync()
            log.info("Global slash commands synced: %d (may take ~1 hour to appear)", len(synced))
    except discord.HTTPException as e:
        log.error("Slash command sync error: %s", e)

    log.info("%s is online and ready", client.user)

@client.tree.command(name="help", description="Show available Commander commands")
async def help_cmd(interaction: discord.Interaction):
    await interaction.response.send_message(HELP_TEXT, ephemeral=True)

# -------------------------
# Message routing
# -------------------------

async def route_message(controller: DialogueController, message: discord.Message, me: discord.ClientUser) -> None:
    """Commands first, then replies to the bot, then everything else as ambient chat."""
    transport = DiscordTransport(message)

    parsed = parse_command(message.content)
    if parsed:
        name, text = parsed
        if name in ANSWER_COMMANDS:
            event = await inbound_from_discord(message, me)
            await handle_answer_command(controller, event, name, text, transport)
            return
        if name == "help":
            await handle_help(transport, message.id)
            return
        # another bot's slash command; "!" text is just chat
        if message.content.startswith("/"):
            return

    event = await inbound_from_discord(message, me)
    if event.is_reply_to_bot:
        await controller.on_reply_to_bot(event, transport)
    else:
        await controller.on_ambient_message(event, transport)

@client.event
async def on_message(message: discord.Message):
    if message.author == client.user or client.controller is None:
        return
    await route_message(client.controller, message, client.user)

# -------------------------
# Run
# -------------------------

def main() -> None:
    setup_logging(cfg.log_level, cfg.log_json)
    try:
        require_credentials(cfg)
    except ConfigError as e:
        log.error("No tokens to proceed: %s", e)
        raise SystemExit(1)

    client.build_controller()
    client.run(cfg.discord_token, log_handler=None)

if __name__ == "__main__":
    main()
