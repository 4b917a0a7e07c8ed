"""
core/errors.py
--------------
Hard failures. Everything else (completion or send errors) is absorbed by the
dialogue handler and only logged.
"""


class ConfigError(RuntimeError):
    """Required configuration (credentials) is missing. Fatal at startup."""


class MissingConversationId(ValueError):
    """A context tree was requested without a conversation id."""
