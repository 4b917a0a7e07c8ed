"""
core/config.py
--------------
Single source of truth for runtime configuration.
Reads environment variables (and .env), exposes a frozen `cfg` object.

Usage:
    from core.config import cfg
    if cfg.probability < 1.0: ...
"""



from __future__ import annotations
from dataclasses import dataclass
import os

from dotenv import load_dotenv

from core.errors import ConfigError

load_dotenv()

DEFAULT_CHAT_MODEL = "gpt-3.5-turbo-16k"

DEFAULT_SYSTEM_PROMPT = """\
you are a propagandist and a division commander in a probably fascist militaristic government representing the "Super Earth"
"Super Earth" has 2 enemies: automatons (robots) and terminids (bugs)
every answer you give must be a short encouragement as if you are sending your troops into a battle to capture (liberate) distant lands
our key values are democracy, prosperity and freedom
always stay in character
never give common knowladge answers, only the encouragments\
"""

@dataclass(frozen=True)
class Config:
    # Credentials
    discord_token: str
    openai_key: str
    openai_organization: str | None
    openai_base_url: str | None

    # Azure OpenAI (optional; used when the endpoint is set)
    azure_key: str
    azure_endpoint: str
    azure_api_version: str

    # Completion
    chat_model: str
    max_tokens: int | None
    system_prompt: str

    # Dialogue behaviour
    probability: float          # ambient messages in groups answered when random() > probability
    context_limit: int
    command_context_limit: int
    typing_interval: float

    # Conversation registry (0 = unbounded / never expire)
    max_conversations: int
    conversation_ttl: float

    # Logging
    log_level: str
    log_json: bool

    # Discord
    guild_id: int | None

    @property
    def use_azure(self) -> bool:
        return bool(self.azure_endpoint)

def _bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return v.strip().lower() in {"1","true","yes","y","on"}

def _float(v: str | None, default: float) -> float:
    try:
        return float(v) if v else default
    except ValueError:
        return default

def _int(v: str | None, default: int | None) -> int | None:
    try:
        return int(v) if v else default
    except ValueError:
        return default

def _limit(v: str | None, default: int) -> int:
    n = _int(v, default)
    return n if n >= 0 else default

def _str(v: str | None, default: str) -> str:
    return v if v else default

def _opt(v: str | None) -> str | None:
    return v.strip() if v and v.strip() else None

def load_config(env: dict | None = None) -> Config:
    """Build a Config from `env` (defaults to os.environ)."""
    env = os.environ if env is None else env
    return Config(
        discord_token       = _str(env.get("DISCORD_TOKEN"), ""),
        openai_key          = _str(env.get("OPENAI_TOKEN"), _str(env.get("OPENAI_API_KEY"), "")),
        openai_organization = _opt(env.get("OPENAI_ORGANIZATION")),
        openai_base_url     = _opt(env.get("OPENAI_BASE_URL")),

        azure_key           = _str(env.get("AZURE_OPENAI_KEY"), ""),
        azure_endpoint      = _str(env.get("AZURE_OPENAI_ENDPOINT"), "").rstrip("/"),
        azure_api_version   = _str(env.get("AZURE_OPENAI_API_VERSION"), "2025-01-01-preview"),

        chat_model          = _str(env.get("CHAT_MODEL"), _str(env.get("AZURE_OPENAI_DEPLOYMENT"), DEFAULT_CHAT_MODEL)),
        max_tokens          = _int(env.get("MAX_TOKENS"), None),
        system_prompt       = _str(env.get("SYSTEM_PROMPT"), DEFAULT_SYSTEM_PROMPT),

        probability           = _float(env.get("PROBABILITY_MODIFIER"), 0.5),
        context_limit         = _limit(env.get("CONTEXT_LIMIT"), 30),
        command_context_limit = _limit(env.get("COMMAND_CONTEXT_LIMIT"), 2),
        typing_interval       = _float(env.get("TYPING_INTERVAL_SECONDS"), 5.0),

        max_conversations   = _int(env.get("MAX_CONVERSATIONS"), 0),
        conversation_ttl    = _float(env.get("CONVERSATION_TTL_SECONDS"), 0.0),

        log_level           = _str(env.get("LOG_LEVEL"), "INFO").upper(),
        log_json            = _bool(env.get("LOG_JSON"), False),

        guild_id            = _int(env.get("GUILD_ID"), None),
    )

def require_credentials(config: Config) -> None:
    """Raise ConfigError if either collaborator is missing its credentials."""
    missing = []
    if not config.discord_token:
        missing.append("DISCORD_TOKEN")
    if config.use_azure:
        if not config.azure_key:
            missing.append("AZURE_OPENAI_KEY")
    elif not config.openai_key:
        missing.append("OPENAI_TOKEN")
    if missing:
        raise ConfigError("Missing credentials: " + ", ".join(missing))

cfg = load_config()
