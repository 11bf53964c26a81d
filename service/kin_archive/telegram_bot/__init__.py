"""
Telegram Bot module for the accounting archive.

ARCHITECTURE: Thin routing layer - NO business logic duplication!
- Receives webhook from Telegram
- Folder commands answer with Mini App deep links
- Files sent to the chat go through the same upload pipeline as the Mini App
"""

from .bot import handle_telegram_update, initialize_bot, shutdown_bot

__all__ = [
    "handle_telegram_update",
    "initialize_bot",
    "shutdown_bot",
]
