"""
Process-wide service instances.

Built once from settings on first use; the archive is loaded from storage at
that point. The API resolves them through FastAPI dependencies, so tests
override them with app.dependency_overrides or set_services().
"""

from dataclasses import dataclass
from typing import Optional

from kin_archive.config import get_settings
from kin_archive.folders import FolderRegistry
from kin_archive.services.archive import ArchiveStore, Preferences
from kin_archive.services.classification import ClassificationEngine, create_classifier
from kin_archive.services.deep_links import DeepLinkResolver
from kin_archive.services.upload import ChatLog, UploadService
from kin_archive.storage import KeyValueStorage, create_storage


@dataclass
class Services:
    registry: FolderRegistry
    storage: KeyValueStorage
    archive: ArchiveStore
    preferences: Preferences
    engine: ClassificationEngine
    resolver: DeepLinkResolver
    chat_log: ChatLog
    uploads: UploadService


def build_services(
    storage: Optional[KeyValueStorage] = None,
    registry: Optional[FolderRegistry] = None,
    classifier=None,
) -> Services:
    """Wire all services. Explicit arguments replace the configured ones."""
    settings = get_settings()

    registry = registry or FolderRegistry()
    storage = storage if storage is not None else create_storage(settings)
    if classifier is None:
        classifier = create_classifier(settings)

    archive = ArchiveStore(storage, registry)
    archive.load()

    preferences = Preferences(storage, settings.bot_username)
    engine = ClassificationEngine(registry, classifier)
    chat_log = ChatLog(registry, preferences)

    return Services(
        registry=registry,
        storage=storage,
        archive=archive,
        preferences=preferences,
        engine=engine,
        resolver=DeepLinkResolver(registry, archive),
        chat_log=chat_log,
        uploads=UploadService(
            engine=engine,
            archive=archive,
            registry=registry,
            chat_log=chat_log,
            mini_app_url=settings.mini_app_url,
            default_uploader=settings.default_uploader
        ),
    )


# Global instance
_services: Optional[Services] = None


def get_services() -> Services:
    """Get or create the services singleton."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Optional[Services]) -> None:
    """Replace (or with None, drop) the singleton."""
    global _services
    _services = services
