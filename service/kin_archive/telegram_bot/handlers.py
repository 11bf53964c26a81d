"""
Telegram message and command handlers.

The bot lives in the accounting group chat:
- folder commands (/invoice, /waybill, ...) answer with a button that opens
  the Mini App on that folder
- files sent to the chat are classified (caption commands win) and archived
- /start <param> resolves deep-link parameters the same way the Mini App does

Handlers call the shared services directly, no HTTP round trip.
"""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from kin_archive.dependencies import get_services
from kin_archive.folders import Folder
from kin_archive.services.deep_links import View, build_link
from kin_archive.logging_config import bot_logger as logger

OPEN_ARCHIVE_TEXT = "📂 Открыть архив"
UPLOAD_ERROR_TEXT = "❌ Ошибка загрузки. Попробуйте ещё раз или используйте /help"


def link_keyboard(text: str, link: str) -> InlineKeyboardMarkup:
    """Single URL button. web_app buttons are not allowed in group chats."""
    return InlineKeyboardMarkup([[InlineKeyboardButton(text, url=link)]])


def folder_from_command(text: str | None) -> Folder | None:
    """'/invoice@MyBot extra' -> invoices folder."""
    if not text:
        return None
    command = text.split()[0].split("@")[0]
    return get_services().registry.find(command)


async def handle_start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /start command with deep link support.

    Deep links handled:
    - folder id or command token: open that folder
    - document id: open the document's folder with it highlighted
    """
    services = get_services()
    bot_username = services.preferences.get_bot_username()
    args = context.args or []

    if args:
        state = services.resolver.resolve_incoming(start_param=args[0])
        if state.view == View.FOLDER:
            folder = services.registry.get(state.folder)
            param = state.highlighted_document_id or folder.id.value
            await update.message.reply_text(
                f"{folder.icon} {folder.name}",
                reply_markup=link_keyboard(OPEN_ARCHIVE_TEXT, build_link(bot_username, param))
            )
            return
        logger.info(f"Unknown start parameter '{args[0]}', showing main view")

    welcome_text = """👋 Архив документов бухгалтерии.

<b>Что я умею:</b>
• Раскладывать присланные файлы по папкам
• Давать ссылки на папки по командам
• Открывать архив в Mini App

Пришлите файл в чат. Чтобы указать папку, добавьте в подпись команду, например /invoice.

/help — инструкция"""

    await update.message.reply_text(
        welcome_text,
        parse_mode="HTML",
        reply_markup=link_keyboard(OPEN_ARCHIVE_TEXT, build_link(bot_username))
    )


async def handle_help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    services = get_services()
    example_link = build_link(services.preferences.get_bot_username(), "/invoice")

    help_text = f"""🚀 <b>Как запустить в чате</b>

1. Добавьте бота в групповой чат бухгалтерии и сделайте его администратором.
2. В @BotFather выберите бота и пункт /setcommands.
3. Вставьте список команд из /commands.
4. Команда папки в чате присылает кнопку со ссылкой на нужный раздел.

<b>Пример ссылки раздела:</b>
{example_link}

<b>Команды:</b>
/folders — папки и количество файлов
/commands — список команд для @BotFather
/invoice /waybill /contract /tax /misc — ссылка на папку"""

    await update.message.reply_text(help_text, parse_mode="HTML")


async def handle_folders_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /folders command - counts per folder."""
    services = get_services()
    counts = services.archive.counts()

    lines = [
        f"{folder.icon} {folder.name} ({folder.command}) — {counts.get(folder.id, 0)} файлов"
        for folder in services.registry
    ]

    await update.message.reply_text(
        "\n".join(lines),
        reply_markup=link_keyboard(OPEN_ARCHIVE_TEXT, build_link(services.preferences.get_bot_username()))
    )


async def handle_commands_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /commands command - listing for @BotFather."""
    await update.message.reply_text(get_services().registry.botfather_commands())


async def handle_folder_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /invoice, /waybill, ... - link to the folder."""
    folder = folder_from_command(update.message.text)
    if folder is None:
        return

    services = get_services()
    link = build_link(services.preferences.get_bot_username(), folder.command)
    count = services.archive.count_by_folder(folder.id)

    await update.message.reply_text(
        f"{folder.icon} {folder.name}\nФайлов: {count}",
        reply_markup=link_keyboard(f"Открыть «{folder.name}»", link)
    )


async def handle_text_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle plain text. Only answers when the text carries a folder token
    Telegram does not parse as a command (e.g. "/счет").
    """
    services = get_services()
    match = services.engine.match_command(update.message.text)
    if match is None:
        return

    folder = services.registry.get(match.suggested_folder)
    link = build_link(services.preferences.get_bot_username(), folder.command)
    await update.message.reply_text(
        f"{folder.icon} {folder.name}",
        reply_markup=link_keyboard(f"Открыть «{folder.name}»", link)
    )


async def handle_document_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle a file sent to the chat.

    1. Classify by file name (command in caption wins)
    2. Archive the document
    3. Reply with the folder and a link to the document
    """
    message = update.message
    document = message.document
    user = update.effective_user
    services = get_services()

    logger.info(f"Document '{document.file_name}' from user {user.id if user else 'unknown'}")

    await context.bot.send_chat_action(chat_id=message.chat_id, action="typing")

    try:
        outcome = await services.uploads.upload(
            filename=document.file_name or "",
            size_bytes=document.file_size or 0,
            message_text=message.caption or "",
            uploader=user.first_name if user else None
        )
    except Exception as e:
        logger.error(f"Upload from chat failed: {e}", exc_info=True)
        await message.reply_text(UPLOAD_ERROR_TEXT)
        return

    folder = services.registry.get(outcome.document.folder)
    link = build_link(services.preferences.get_bot_username(), outcome.document.id)

    await message.reply_text(
        f"{folder.icon} {outcome.document.name} → «{folder.name}»\n"
        f"{outcome.classification.reasoning}",
        reply_markup=link_keyboard("Открыть документ", link)
    )


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in handlers."""
    logger.error(f"Bot error: {context.error}", exc_info=context.error)

    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text(
            "❌ Ошибка обработки сообщения.\n"
            "Попробуйте ещё раз или используйте /help"
        )
