"""
Archive store.

The persisted document list is the single source of truth. The in-memory
list is a cache of it and is written back in full on every append.
New documents go to the front so listings stay most-recent-first.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from kin_archive.agents.schemas import Document
from kin_archive.folders import FolderId, FolderRegistry
from kin_archive.logging_config import service_logger as logger
from kin_archive.storage import ARCHIVE_KEY, BOT_NAME_KEY, KeyValueStorage

_documents_adapter = TypeAdapter(list[Document])


def generate_document_id(now: Optional[datetime] = None) -> str:
    """Millisecond timestamp plus a short random suffix. URL-safe, not unique by contract."""
    now = now or datetime.now()
    return f"{int(now.timestamp() * 1000)}{uuid.uuid4().hex[:4]}"


def format_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024:.1f} KB"


def new_document(
    name: str,
    folder: FolderId,
    size_bytes: int,
    uploader: str,
    url_builder=None,
    now: Optional[datetime] = None,
) -> Document:
    """
    Build a Document at upload time.

    Args:
        name: Original filename
        folder: Target folder
        size_bytes: File size in bytes
        uploader: Display name of the uploader
        url_builder: Optional callable document_id -> link stored in Document.url
        now: Upload time (defaults to now)
    """
    now = now or datetime.now()
    document_id = generate_document_id(now)
    return Document(
        id=document_id,
        name=name,
        folder=folder,
        upload_date=now.strftime("%d.%m.%Y"),
        size=format_size(size_bytes),
        uploader=uploader,
        url=url_builder(document_id) if url_builder else "",
    )


def decode_documents(raw: Optional[str]) -> list[Document]:
    """Decode the archive slot. Absent or invalid payloads decode to []."""
    if not raw:
        return []
    try:
        return _documents_adapter.validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Stored archive is corrupt, starting empty: {e.error_count()} errors")
        return []


def encode_documents(documents: list[Document]) -> str:
    return _documents_adapter.dump_json(documents, by_alias=True).decode("utf-8")


class ArchiveStore:
    """Ordered document collection backed by a key-value slot."""

    def __init__(self, storage: KeyValueStorage, registry: FolderRegistry, key: str = ARCHIVE_KEY):
        self.storage = storage
        self.registry = registry
        self.key = key
        self._documents: list[Document] = []

    def load(self) -> list[Document]:
        """Rehydrate from storage. Never raises on bad data."""
        try:
            raw = self.storage.get(self.key)
        except Exception as e:
            logger.error(f"Failed to read archive slot {self.key}: {e}", exc_info=True)
            raw = None

        self._documents = decode_documents(raw)
        logger.info(f"Archive loaded: {len(self._documents)} documents")
        return list(self._documents)

    @property
    def documents(self) -> list[Document]:
        return list(self._documents)

    def append(self, document: Document) -> None:
        """Prepend and persist the whole list. Storage errors propagate."""
        updated = [document, *self._documents]
        self.storage.set(self.key, encode_documents(updated))
        self._documents = updated
        logger.info(f"Archived {document.id} '{document.name}' -> {document.folder.value}")

    def list_by_folder(self, folder_id: FolderId | str) -> list[Document]:
        folder_id = FolderId(folder_id)
        return [d for d in self._documents if d.folder == folder_id]

    def count_by_folder(self, folder_id: FolderId | str) -> int:
        return len(self.list_by_folder(folder_id))

    def counts(self) -> dict[FolderId, int]:
        """Counts for every registered folder, zero included."""
        result = {folder.id: 0 for folder in self.registry}
        for document in self._documents:
            result[document.folder] = result.get(document.folder, 0) + 1
        return result

    def get(self, document_id: str) -> Optional[Document]:
        for document in self._documents:
            if document.id == document_id:
                return document
        return None

    def clear(self) -> None:
        """Drop every document. The only removal path."""
        self._documents = []
        self.storage.delete(self.key)
        logger.info("Archive cleared")


class Preferences:
    """Bot username slot used to build deep links."""

    def __init__(self, storage: KeyValueStorage, default_bot_username: str, key: str = BOT_NAME_KEY):
        self.storage = storage
        self.default_bot_username = default_bot_username
        self.key = key

    def get_bot_username(self) -> str:
        try:
            value = self.storage.get(self.key)
        except Exception as e:
            logger.error(f"Failed to read bot username: {e}")
            value = None
        return value or self.default_bot_username

    def set_bot_username(self, bot_username: str) -> str:
        value = bot_username.strip()
        self.storage.set(self.key, value)
        return value
