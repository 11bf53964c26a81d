"""
Tests for the archive store, preferences slot and storage backends.
"""

import json
from datetime import datetime

import pytest

from kin_archive.folders import FolderId, FolderRegistry
from kin_archive.services.archive import (
    ArchiveStore,
    Preferences,
    decode_documents,
    encode_documents,
    format_size,
    new_document,
)
from kin_archive.storage import ARCHIVE_KEY, BOT_NAME_KEY, FileStorage, MemoryStorage


def make_doc(name: str, folder: FolderId, size: int = 2048):
    return new_document(name=name, folder=folder, size_bytes=size, uploader="Анна")


class TestNewDocument:
    def test_display_fields(self):
        doc = new_document(
            name="Договор.pdf",
            folder=FolderId.CONTRACTS,
            size_bytes=1536,
            uploader="Анна",
            url_builder=lambda doc_id: f"https://archive.example/#doc={doc_id}",
            now=datetime(2024, 3, 5, 12, 0),
        )
        assert doc.upload_date == "05.03.2024"
        assert doc.size == "1.5 KB"
        assert doc.uploader == "Анна"
        assert doc.url == f"https://archive.example/#doc={doc.id}"

    def test_id_is_url_safe(self):
        doc = make_doc("a.pdf", FolderId.MISC)
        assert doc.id.isalnum()

    def test_format_size(self):
        assert format_size(0) == "0.0 KB"
        assert format_size(10240) == "10.0 KB"


class TestArchiveStore:
    """Ordering, persistence and derived views."""

    def test_load_empty_storage(self):
        store = ArchiveStore(MemoryStorage(), FolderRegistry())
        assert store.load() == []

    def test_append_prepends(self):
        store = ArchiveStore(MemoryStorage(), FolderRegistry())
        first = make_doc("first.pdf", FolderId.MISC)
        second = make_doc("second.pdf", FolderId.MISC)
        store.append(first)
        store.append(second)
        assert [d.name for d in store.documents] == ["second.pdf", "first.pdf"]

    def test_append_then_reload_round_trip(self):
        storage = MemoryStorage()
        store = ArchiveStore(storage, FolderRegistry())
        docs = [
            make_doc("Счет 1.pdf", FolderId.INVOICES),
            make_doc("УПД 2.pdf", FolderId.WAYBILLS),
            make_doc("Договор 3.pdf", FolderId.CONTRACTS),
        ]
        for doc in docs:
            store.append(doc)

        reloaded = ArchiveStore(storage, FolderRegistry())
        assert reloaded.load() == store.documents
        assert [d.name for d in reloaded.documents] == ["Договор 3.pdf", "УПД 2.pdf", "Счет 1.pdf"]

    def test_counts_sum_to_appended(self):
        store = ArchiveStore(MemoryStorage(), FolderRegistry())
        folders = [FolderId.INVOICES, FolderId.INVOICES, FolderId.TAXES, FolderId.MISC, FolderId.CONTRACTS, FolderId.MISC, FolderId.INVOICES]
        for i, folder in enumerate(folders):
            store.append(make_doc(f"doc{i}.pdf", folder))

        counts = store.counts()
        assert sum(store.count_by_folder(f) for f in FolderId) == len(folders)
        assert sum(counts.values()) == len(folders)
        assert counts[FolderId.INVOICES] == 3
        assert counts[FolderId.WAYBILLS] == 0

    def test_list_by_folder_keeps_recent_first(self):
        store = ArchiveStore(MemoryStorage(), FolderRegistry())
        store.append(make_doc("old.pdf", FolderId.TAXES))
        store.append(make_doc("other.pdf", FolderId.MISC))
        store.append(make_doc("new.pdf", FolderId.TAXES))
        assert [d.name for d in store.list_by_folder("taxes")] == ["new.pdf", "old.pdf"]

    def test_duplicate_ids_not_deduplicated(self):
        store = ArchiveStore(MemoryStorage(), FolderRegistry())
        doc = make_doc("a.pdf", FolderId.MISC)
        store.append(doc)
        store.append(doc)
        assert store.count_by_folder(FolderId.MISC) == 2

    def test_get(self):
        store = ArchiveStore(MemoryStorage(), FolderRegistry())
        doc = make_doc("a.pdf", FolderId.MISC)
        store.append(doc)
        assert store.get(doc.id) == doc
        assert store.get("missing") is None

    def test_clear(self):
        storage = MemoryStorage()
        store = ArchiveStore(storage, FolderRegistry())
        store.append(make_doc("a.pdf", FolderId.MISC))
        store.clear()
        assert store.documents == []
        assert storage.get(ARCHIVE_KEY) is None

    @pytest.mark.parametrize("payload", [
        '[{"id": "1", "name": "a.pdf", "fold',
        "{not json",
        '{"id": "1"}',
        '[{"id": "1", "name": "a.pdf", "folder": "receipts"}]',
        "42",
    ])
    def test_corrupt_payload_loads_empty(self, payload):
        store = ArchiveStore(MemoryStorage({ARCHIVE_KEY: payload}), FolderRegistry())
        assert store.load() == []

    def test_storage_read_failure_loads_empty(self):
        class BrokenStorage(MemoryStorage):
            def get(self, key):
                raise OSError("disk gone")

        store = ArchiveStore(BrokenStorage(), FolderRegistry())
        assert store.load() == []

    def test_storage_write_failure_propagates(self):
        class ReadOnlyStorage(MemoryStorage):
            def set(self, key, value):
                raise OSError("read-only")

        storage = ReadOnlyStorage()
        store = ArchiveStore(storage, FolderRegistry())
        with pytest.raises(OSError):
            store.append(make_doc("a.pdf", FolderId.MISC))

        assert store.documents == []
        assert store.count_by_folder(FolderId.MISC) == 0
        assert storage.get(ARCHIVE_KEY) is None

    def test_failed_write_keeps_previous_documents(self):
        storage = MemoryStorage()
        store = ArchiveStore(storage, FolderRegistry())
        first = make_doc("first.pdf", FolderId.TAXES)
        store.append(first)

        def fail(key, value):
            raise OSError("disk full")

        storage.set = fail
        with pytest.raises(OSError):
            store.append(make_doc("second.pdf", FolderId.TAXES))

        assert store.documents == [first]
        assert store.count_by_folder(FolderId.TAXES) == 1


class TestDocumentEncoding:
    def test_persisted_field_names(self):
        raw = encode_documents([make_doc("a.pdf", FolderId.TAXES)])
        item = json.loads(raw)[0]
        assert item["folder"] == "taxes"
        assert "uploadDate" in item
        assert "uploader" in item

    def test_legacy_field_names_accepted(self):
        raw = json.dumps([{
            "id": "1700000000000",
            "name": "Счет.pdf",
            "folder": "invoices",
            "date": "01.02.2024",
            "user": "Сотрудник"
        }], ensure_ascii=False)
        docs = decode_documents(raw)
        assert docs[0].upload_date == "01.02.2024"
        assert docs[0].uploader == "Сотрудник"

    def test_none_decodes_empty(self):
        assert decode_documents(None) == []


class TestPreferences:
    def test_default_bot_username(self):
        assert Preferences(MemoryStorage(), "Default_bot").get_bot_username() == "Default_bot"

    def test_set_bot_username_persists(self):
        storage = MemoryStorage()
        Preferences(storage, "Default_bot").set_bot_username("  Company_bot ")
        assert storage.get(BOT_NAME_KEY) == "Company_bot"
        assert Preferences(storage, "Default_bot").get_bot_username() == "Company_bot"


class TestFileStorage:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "archive.json"
        FileStorage(path).set("k", "значение")
        assert FileStorage(path).get("k") == "значение"

    def test_missing_file_reads_empty(self, tmp_path):
        assert FileStorage(tmp_path / "none.json").get("k") is None

    def test_damaged_file_reads_empty(self, tmp_path):
        path = tmp_path / "archive.json"
        path.write_text('{"kin_archive_v4": "[', encoding="utf-8")
        assert FileStorage(path).get(ARCHIVE_KEY) is None

    def test_delete(self, tmp_path):
        storage = FileStorage(tmp_path / "archive.json")
        storage.set("a", "1")
        storage.set("b", "2")
        storage.delete("a")
        assert storage.get("a") is None
        assert storage.get("b") == "2"

    def test_archive_over_file_storage(self, tmp_path):
        path = tmp_path / "archive.json"
        store = ArchiveStore(FileStorage(path), FolderRegistry())
        store.append(make_doc("Договор.pdf", FolderId.CONTRACTS))

        reloaded = ArchiveStore(FileStorage(path), FolderRegistry())
        assert [d.name for d in reloaded.load()] == ["Договор.pdf"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
