"""Telegram relay bot with per-conversation rate limiting."""

__version__ = "1.0.0"
