"""Tests for the root logger bootstrap."""

from __future__ import annotations

import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from core.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers, root.level = handlers, level


def test_plain_lines():
    setup_logging("debug")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)


def test_json_lines():
    setup_logging("INFO", json_output=True)
    assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)


def test_third_party_loggers_quieted():
    setup_logging("DEBUG")
    assert logging.getLogger("discord").level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
