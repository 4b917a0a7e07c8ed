"""
core/logging.py
---------------
Root logger bootstrap. Every module logs through `logging.getLogger(__name__)`;
this decides where those lines go and how they look:

* human-readable lines (default) for running the bot locally,
* JSON lines (`LOG_JSON=true`) for log shippers.
"""

from __future__ import annotations
import logging
import sys

_DEV_FORMAT = "%(asctime)s %(levelname)-7s %(name)s  %(message)s"
_DEV_DATEFMT = "%H:%M:%S"

_QUIET_LOGGERS = ("discord", "discord.http", "discord.gateway", "httpx", "httpcore", "openai")


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure the root logger (call once at startup)."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)

    if json_output:
        from pythonjsonlogger.json import JsonFormatter

        formatter: logging.Formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "logger",
            },
        )
    else:
        formatter = logging.Formatter(fmt=_DEV_FORMAT, datefmt=_DEV_DATEFMT)

    handler.setFormatter(formatter)
    root.handlers = [handler]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
