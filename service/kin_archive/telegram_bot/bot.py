"""
Main Telegram bot handler.

Uses python-telegram-bot library with webhook mode.
"""

from telegram import Update
from telegram.ext import Application, CommandHandler, MessageHandler, filters

from kin_archive.config import get_settings
from kin_archive.folders import FolderRegistry
from kin_archive.logging_config import bot_logger as logger
from .handlers import (
    handle_start_command,
    handle_help_command,
    handle_folders_command,
    handle_commands_command,
    handle_folder_command,
    handle_text_message,
    handle_document_message,
    handle_error,
)


# Global application instance (initialized once)
_application: Application | None = None


def build_bot_application(token: str, registry: FolderRegistry | None = None) -> Application:
    """Create application and register handlers."""
    registry = registry or FolderRegistry()

    application = (
        Application.builder()
        .token(token)
        .updater(None)  # Webhook mode: updates come from FastAPI
        .build()
    )

    # Register handlers
    application.add_handler(CommandHandler("start", handle_start_command))
    application.add_handler(CommandHandler("help", handle_help_command))
    application.add_handler(CommandHandler("folders", handle_folders_command))
    application.add_handler(CommandHandler("commands", handle_commands_command))

    # One command per folder: /invoice, /waybill, ...
    application.add_handler(
        CommandHandler([folder.command_token for folder in registry], handle_folder_command)
    )

    # Files sent to the chat
    application.add_handler(
        MessageHandler(filters.Document.ALL, handle_document_message)
    )

    # Text messages (folder tokens Telegram does not treat as commands)
    application.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text_message)
    )

    # Error handler
    application.add_error_handler(handle_error)

    return application


def get_bot_application() -> Application:
    """Get or create telegram bot application."""
    global _application

    if _application is None:
        settings = get_settings()
        _application = build_bot_application(settings.telegram_bot_token)
        logger.info("Telegram bot application initialized")

    return _application


def bot_enabled() -> bool:
    return bool(get_settings().telegram_bot_token)


async def handle_telegram_update(update_data: dict) -> None:
    """
    Process incoming webhook update from Telegram.

    This is called by FastAPI webhook endpoint.
    Runs handlers in background (fire-and-forget).
    """
    if not bot_enabled():
        logger.warning("Update received but TELEGRAM_BOT_TOKEN is not set, dropping it")
        return

    try:
        app = get_bot_application()

        # Convert dict to Update object
        update = Update.de_json(update_data, app.bot)

        if update:
            # Process update through handlers
            await app.process_update(update)
        else:
            logger.warning("Received invalid update data")

    except Exception as e:
        logger.error(f"Failed to process update: {e}", exc_info=True)


async def initialize_bot() -> None:
    """
    Initialize bot application (call on startup).
    """
    if not bot_enabled():
        logger.warning("TELEGRAM_BOT_TOKEN not set, bot disabled")
        return

    app = get_bot_application()
    await app.initialize()
    logger.info("Bot initialized successfully")


async def shutdown_bot() -> None:
    """
    Shutdown bot application (call on shutdown).
    """
    global _application
    if _application:
        await _application.shutdown()
        _application = None
        logger.info("Bot shut down")
