"""Tests for the logging configuration."""

from __future__ import annotations

import logging
import logging.handlers

import pytest

from relaybot.logging_config import ContextFilter, ContextFormatter, chat_id_var, setup_logging


@pytest.fixture(autouse=True)
def _clean_root_logger():
    """Remove any handlers we add during tests so they don't leak."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    root.handlers = before
    root.setLevel(level)


def _record(msg="hello", level=logging.INFO):
    return logging.LogRecord("relaybot.test", level, "", 10, msg, (), None)


# ── ContextFilter ──────────────────────────────────────────────────────────


def test_filter_stamps_role_and_empty_chat():
    record = _record()
    assert ContextFilter("Bot").filter(record) is True
    assert record.role == "Bot"  # type: ignore[attr-defined]
    assert record.chat_id == ""  # type: ignore[attr-defined]


def test_filter_reads_chat_context():
    token = chat_id_var.set("42")
    try:
        record = _record()
        ContextFilter("Bot").filter(record)
        assert record.chat_id == "42"  # type: ignore[attr-defined]
    finally:
        chat_id_var.reset(token)


# ── ContextFormatter ───────────────────────────────────────────────────────


def test_format_without_chat():
    record = _record()
    ContextFilter("Bot").filter(record)
    line = ContextFormatter().format(record)
    assert "[Bot][INFO]" in line
    assert "relaybot.test:10 - hello" in line
    assert "[Chat" not in line


def test_format_with_chat():
    token = chat_id_var.set("42")
    try:
        record = _record(level=logging.WARNING)
        ContextFilter("Bot").filter(record)
        line = ContextFormatter().format(record)
    finally:
        chat_id_var.reset(token)
    assert "[Bot][Chat 42][WARNING]" in line


def test_format_includes_exception():
    try:
        raise ValueError("bad")
    except ValueError:
        import sys

        record = logging.LogRecord("x", logging.ERROR, "", 1, "failed", (), sys.exc_info())
    line = ContextFormatter().format(record)
    assert "ValueError: bad" in line


# ── setup_logging ──────────────────────────────────────────────────────────


def _context_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h.formatter, ContextFormatter)]


def test_setup_logging_idempotent():
    setup_logging("Bot")
    setup_logging("Bot")
    assert len(_context_handlers()) == 1


def test_setup_logging_file_handler(tmp_path, monkeypatch):
    from relaybot.config import settings

    log_file = tmp_path / "logs" / "relay.log"
    monkeypatch.setattr(settings, "LOG_FILE", str(log_file))
    setup_logging("Bot")

    file_handlers = [h for h in _context_handlers() if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert log_file.parent.is_dir()
    file_handlers[0].close()
