"""
Deep links into the Mini App.

Outbound: https://t.me/<bot>/app?startapp=<token> and <origin><path>#doc=<id>.
Inbound: the startapp launch parameter or a #doc= fragment is resolved to a
navigation target. Unknown parameters resolve to the main view.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from kin_archive.folders import FolderId, FolderRegistry
from kin_archive.services.archive import ArchiveStore

TELEGRAM_LINK_BASE = "https://t.me"
FRAGMENT_DOC_PREFIX = "doc="


class View(str, Enum):
    MAIN = "main"
    FOLDER = "folder"
    SETTINGS = "settings"
    HELP = "help"


@dataclass(frozen=True)
class NavigationState:
    view: View = View.MAIN
    folder: Optional[FolderId] = None
    highlighted_document_id: Optional[str] = None


def clean_bot_username(bot_username: str) -> str:
    """Strip surrounding whitespace and one leading '@'."""
    name = bot_username.strip()
    if name.startswith("@"):
        name = name[1:]
    return name.strip()


def build_link(bot_username: str, param: Optional[str] = None) -> str:
    """
    Mini App link for the bot, optionally with a startapp parameter.

    param is a folder id, a command token (leading "/" dropped) or a document
    id. It is not escaped; callers pass URL-safe tokens.
    """
    name = clean_bot_username(bot_username)
    token = (param or "").strip()
    if token.startswith("/"):
        token = token[1:]
    if token:
        return f"{TELEGRAM_LINK_BASE}/{name}/app?startapp={token}"
    return f"{TELEGRAM_LINK_BASE}/{name}/app"


def build_fragment_link(document_id: str, origin: str, path: str = "/") -> str:
    return f"{origin.rstrip('/')}{path}#{FRAGMENT_DOC_PREFIX}{document_id}"


def parse_fragment(fragment: Optional[str]) -> Optional[str]:
    """Document id from "#doc=<id>" (leading '#' optional), else None."""
    if not fragment:
        return None
    value = fragment.strip().lstrip("#")
    if not value.startswith(FRAGMENT_DOC_PREFIX):
        return None
    document_id = value[len(FRAGMENT_DOC_PREFIX):]
    return document_id or None


class DeepLinkResolver:
    def __init__(self, registry: FolderRegistry, archive: ArchiveStore):
        self.registry = registry
        self.archive = archive

    def _document_target(self, document_id: Optional[str]) -> Optional[NavigationState]:
        if not document_id:
            return None
        document = self.archive.get(document_id)
        if document is None:
            return None
        return NavigationState(
            view=View.FOLDER,
            folder=document.folder,
            highlighted_document_id=document.id
        )

    def resolve_incoming(self, start_param: Optional[str] = None, fragment: Optional[str] = None) -> NavigationState:
        """
        Navigation for launch parameters. Best effort, never raises.

        The host-supplied start parameter is checked first (folder id, command
        token, then document id), then the URL fragment.
        """
        if start_param:
            folder = self.registry.find(start_param)
            if folder:
                return NavigationState(view=View.FOLDER, folder=folder.id)

            target = self._document_target(start_param.strip())
            if target:
                return target

        target = self._document_target(parse_fragment(fragment))
        if target:
            return target

        return NavigationState()
