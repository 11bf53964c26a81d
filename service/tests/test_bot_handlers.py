"""
Tests for Telegram handlers with mocked updates.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from kin_archive.folders import FolderId
from kin_archive.telegram_bot.handlers import (
    UPLOAD_ERROR_TEXT,
    handle_commands_command,
    handle_document_message,
    handle_folder_command,
    handle_folders_command,
    handle_start_command,
    handle_text_message,
)


def make_update(text: str | None = None, document=None, caption: str | None = None):
    message = MagicMock()
    message.text = text
    message.caption = caption
    message.document = document
    message.chat_id = -100123
    message.reply_text = AsyncMock()
    update = MagicMock()
    update.message = message
    update.effective_user = SimpleNamespace(id=42, first_name="Анна")
    return update


def make_context(args=None):
    context = MagicMock()
    context.args = args or []
    context.bot.send_chat_action = AsyncMock()
    return context


def button_url(reply_mock) -> str:
    markup = reply_mock.call_args.kwargs["reply_markup"]
    return markup.inline_keyboard[0][0].url


class TestCommands:
    async def test_folder_command_replies_with_link(self, services):
        update = make_update("/invoice@Test_bot")
        await handle_folder_command(update, make_context())
        assert button_url(update.message.reply_text) == "https://t.me/Test_bot/app?startapp=invoice"

    async def test_folders_lists_counts(self, services):
        update = make_update("/folders")
        await handle_folders_command(update, make_context())
        text = update.message.reply_text.call_args.args[0]
        assert len(text.splitlines()) == 5
        assert button_url(update.message.reply_text) == "https://t.me/Test_bot/app"

    async def test_commands_listing(self, services):
        update = make_update("/commands")
        await handle_commands_command(update, make_context())
        assert "tax - Налоги и отчеты" in update.message.reply_text.call_args.args[0]

    async def test_start_with_folder_param(self, services):
        update = make_update("/start taxes")
        await handle_start_command(update, make_context(["taxes"]))
        assert button_url(update.message.reply_text) == "https://t.me/Test_bot/app?startapp=taxes"

    async def test_start_with_unknown_param_shows_welcome(self, services):
        update = make_update("/start zzz")
        await handle_start_command(update, make_context(["zzz"]))
        assert button_url(update.message.reply_text) == "https://t.me/Test_bot/app"


class TestTextMessages:
    async def test_synonym_gets_link(self, services):
        update = make_update("скиньте /счет от поставщика")
        await handle_text_message(update, make_context())
        assert button_url(update.message.reply_text).endswith("startapp=invoice")

    async def test_plain_text_ignored(self, services):
        update = make_update("доброе утро")
        await handle_text_message(update, make_context())
        update.message.reply_text.assert_not_called()


class TestDocumentMessages:
    async def test_document_archived(self, services):
        document = SimpleNamespace(file_name="УПД_12.pdf", file_size=3072)
        update = make_update(document=document)

        await handle_document_message(update, make_context())

        stored = services.archive.documents
        assert len(stored) == 1
        assert stored[0].folder == FolderId.WAYBILLS
        assert stored[0].uploader == "Анна"
        assert stored[0].size == "3.0 KB"
        assert button_url(update.message.reply_text) == f"https://t.me/Test_bot/app?startapp={stored[0].id}"

    async def test_caption_command_wins(self, services):
        document = SimpleNamespace(file_name="УПД_12.pdf", file_size=10)
        update = make_update(document=document, caption="/contract")
        await handle_document_message(update, make_context())
        assert services.archive.documents[0].folder == FolderId.CONTRACTS

    async def test_storage_failure_replies_upload_error(self, services, storage, monkeypatch):
        def fail(key, value):
            raise OSError("disk full")

        monkeypatch.setattr(storage, "set", fail)
        update = make_update(document=SimpleNamespace(file_name="a.pdf", file_size=1))
        await handle_document_message(update, make_context())
        update.message.reply_text.assert_called_once_with(UPLOAD_ERROR_TEXT)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
