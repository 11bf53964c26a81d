"""
Upload pipeline shared by the Mini App API and the Telegram bot.

classify -> build Document -> append to archive -> chat log entries.
Classification never fails; storage errors propagate to the caller, which
reports them as an upload error.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from kin_archive.agents.schemas import (
    ChatMessage,
    ChatSender,
    ClassificationResult,
    ClassificationSource,
    Document,
)
from kin_archive.folders import FolderId, FolderRegistry
from kin_archive.logging_config import service_logger as logger
from kin_archive.services.archive import ArchiveStore, Preferences, new_document
from kin_archive.services.classification import ClassificationEngine
from kin_archive.services.deep_links import NavigationState, View, build_fragment_link, build_link

ACTIVE_FOLDER_REASONING = "Загружено в открытую папку"
CHAT_LOG_LIMIT = 200


@dataclass
class UploadOutcome:
    document: Document
    classification: ClassificationResult
    navigation: NavigationState


class ChatLog:
    """Transient chat transcript. Not persisted."""

    def __init__(self, registry: FolderRegistry, preferences: Preferences, limit: int = CHAT_LOG_LIMIT):
        self.registry = registry
        self.preferences = preferences
        self.limit = limit
        self._messages: list[ChatMessage] = []

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def record(self, text: str, sender: ChatSender, attached_doc_id: Optional[str] = None) -> ChatMessage:
        message = ChatMessage(
            id=uuid.uuid4().hex[:12],
            text=text,
            sender=sender,
            timestamp=datetime.now().strftime("%H:%M"),
            attached_doc_id=attached_doc_id
        )
        self._messages.append(message)
        if len(self._messages) > self.limit:
            del self._messages[: len(self._messages) - self.limit]
        return message

    def post_text(self, text: str) -> list[ChatMessage]:
        """
        Record a user message. A folder command in it gets a system reply
        with the folder's deep link.
        """
        posted = [self.record(text, ChatSender.USER)]

        lowered = text.casefold()
        for token, folder in self.registry.routing_tokens():
            if token in lowered:
                link = build_link(self.preferences.get_bot_username(), folder.command)
                posted.append(self.record(f"{folder.icon} {folder.name}: {link}", ChatSender.SYSTEM))
                break

        return posted

    def clear(self) -> None:
        self._messages = []


class UploadService:
    def __init__(
        self,
        engine: ClassificationEngine,
        archive: ArchiveStore,
        registry: FolderRegistry,
        chat_log: ChatLog,
        mini_app_url: str,
        default_uploader: str = "Сотрудник"
    ):
        self.engine = engine
        self.archive = archive
        self.registry = registry
        self.chat_log = chat_log
        self.mini_app_url = mini_app_url
        self.default_uploader = default_uploader

    async def upload(
        self,
        filename: str,
        size_bytes: int,
        message_text: str = "",
        active_folder: Optional[FolderId] = None,
        uploader: Optional[str] = None
    ) -> UploadOutcome:
        """
        Classify and archive one uploaded file.

        Args:
            filename: Original file name
            size_bytes: File size
            message_text: Accompanying text (caption / chat message)
            active_folder: Folder open in the UI; skips classification
            uploader: Display name, defaults to default_uploader
        """
        if active_folder is not None:
            classification = ClassificationResult(
                suggested_folder=FolderId(active_folder),
                reasoning=ACTIVE_FOLDER_REASONING,
                source=ClassificationSource.ACTIVE_FOLDER
            )
        else:
            classification = await self.engine.classify(filename, message_text)

        document = new_document(
            name=filename or "без имени",
            folder=classification.suggested_folder,
            size_bytes=size_bytes,
            uploader=uploader or self.default_uploader,
            url_builder=lambda doc_id: build_fragment_link(doc_id, self.mini_app_url)
        )
        self.archive.append(document)

        folder = self.registry.get(document.folder)
        self.chat_log.record(f"📎 {document.name}", ChatSender.USER, attached_doc_id=document.id)
        self.chat_log.record(
            f"{folder.icon} Сохранено в «{folder.name}». {classification.reasoning}",
            ChatSender.SYSTEM,
            attached_doc_id=document.id
        )

        logger.info(
            f"Upload '{document.name}' -> {document.folder.value} "
            f"({classification.source.value}: {classification.reasoning})"
        )

        return UploadOutcome(
            document=document,
            classification=classification,
            navigation=NavigationState(
                view=View.FOLDER,
                folder=document.folder,
                highlighted_document_id=document.id
            )
        )
