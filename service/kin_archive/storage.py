"""
Key-value persistence for the archive.

Two string slots are used: the JSON-encoded document list and the
configured bot username. Backends are injected into the stores so tests
can run against MemoryStorage.
"""

import json
from pathlib import Path
from typing import Optional, Protocol

from supabase import create_client, Client

from kin_archive.config import Settings
from kin_archive.logging_config import service_logger as logger

ARCHIVE_KEY = "kin_archive_v4"
BOT_NAME_KEY = "bot_name_v3"


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage. Lost on restart."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """
    All slots in one JSON object on disk.

    The file is rewritten in full on every set/delete. An unreadable file
    reads as empty, so a damaged file never blocks startup.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Storage file {self.path} unreadable, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not an object, treating as empty")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


class SupabaseStorage:
    """
    Slots stored as rows of the kv_store table:

        create table kv_store (key text primary key, value text not null);
    """

    TABLE = "kv_store"

    def __init__(self, client: Client):
        self.client = client

    def get(self, key: str) -> Optional[str]:
        result = self.client.table(self.TABLE).select("value").eq("key", key).execute()
        if not result.data:
            return None
        return result.data[0]["value"]

    def set(self, key: str, value: str) -> None:
        self.client.table(self.TABLE).upsert({"key": key, "value": value}).execute()

    def delete(self, key: str) -> None:
        self.client.table(self.TABLE).delete().eq("key", key).execute()


def get_supabase_admin(settings: Settings) -> Client:
    """Service role client, for server-side operations."""
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key
    )


def create_storage(settings: Settings) -> KeyValueStorage:
    """Build the storage backend named in settings."""
    backend = settings.storage_backend.lower()

    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorage(settings.storage_path)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ValueError("storage_backend=supabase needs supabase_url and supabase_service_role_key")
        return SupabaseStorage(get_supabase_admin(settings))

    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
