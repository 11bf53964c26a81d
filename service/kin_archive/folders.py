"""
Folder registry.

Five fixed accounting folders. The registry is built once at startup and
passed into the classification engine, archive store and link resolver.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class FolderId(str, Enum):
    """Closed set of archive folders."""
    INVOICES = "invoices"
    WAYBILLS = "waybills"
    CONTRACTS = "contracts"
    TAXES = "taxes"
    MISC = "misc"


@dataclass(frozen=True)
class Folder:
    id: FolderId
    name: str
    description: str
    color: str
    icon: str
    command: str  # slash token, also used as startapp parameter without "/"
    synonyms: tuple[str, ...] = field(default_factory=tuple)

    @property
    def command_token(self) -> str:
        """Command without the leading slash."""
        return self.command.lstrip("/")


DEFAULT_FOLDERS: tuple[Folder, ...] = (
    Folder(
        id=FolderId.INVOICES,
        name="Счета и спецификации",
        description="Оплата и инвойсы",
        color="bg-blue-600",
        icon="📄",
        command="/invoice",
        synonyms=("/счет", "/счёт"),
    ),
    Folder(
        id=FolderId.WAYBILLS,
        name="Накладные и УПД",
        description="Товарный учет",
        color="bg-emerald-600",
        icon="🚚",
        command="/waybill",
        synonyms=("/упд", "/накладная"),
    ),
    Folder(
        id=FolderId.CONTRACTS,
        name="Договоры",
        description="Юридические док-ты",
        color="bg-amber-500",
        icon="📝",
        command="/contract",
        synonyms=("/дог",),
    ),
    Folder(
        id=FolderId.TAXES,
        name="Налоги и отчеты",
        description="ФНС и фонды",
        color="bg-indigo-600",
        icon="📊",
        command="/tax",
        synonyms=("/налог",),
    ),
    Folder(
        id=FolderId.MISC,
        name="Разное",
        description="Прочие документы",
        color="bg-slate-500",
        icon="📁",
        command="/misc",
        synonyms=("/др",),
    ),
)


class FolderRegistry:
    """Immutable lookup over the configured folders."""

    def __init__(self, folders: tuple[Folder, ...] = DEFAULT_FOLDERS):
        ids = [f.id for f in folders]
        if sorted(ids) != sorted(FolderId) or len(set(ids)) != len(ids):
            raise ValueError("Registry must hold exactly one folder per FolderId")
        self._folders = tuple(folders)
        self._by_id = {f.id: f for f in self._folders}

    def __iter__(self):
        return iter(self._folders)

    def __len__(self) -> int:
        return len(self._folders)

    @property
    def folders(self) -> tuple[Folder, ...]:
        return self._folders

    def get(self, folder_id: FolderId | str) -> Folder:
        """Folder by id. Raises KeyError for ids outside the enumeration."""
        try:
            return self._by_id[FolderId(folder_id)]
        except ValueError:
            raise KeyError(folder_id)

    def find(self, token: Optional[str]) -> Optional[Folder]:
        """
        Find folder by id or command token.

        Accepts "invoices", "invoice", "/invoice" and the synonyms "счет",
        "/счет" (case-insensitive). Returns None for anything else.
        """
        if not token:
            return None

        value = token.strip().casefold()
        bare = value.lstrip("/")
        for folder in self._folders:
            if value == folder.id.value:
                return folder
            if bare == folder.command_token.casefold():
                return folder
            if any(bare == synonym.lstrip("/").casefold() for synonym in folder.synonyms):
                return folder
        return None

    def routing_tokens(self) -> list[tuple[str, Folder]]:
        """Tokens that route a message explicitly, in registry order."""
        tokens = []
        for folder in self._folders:
            tokens.append((folder.command.casefold(), folder))
            for synonym in folder.synonyms:
                tokens.append((synonym.casefold(), folder))
        return tokens

    def botfather_commands(self) -> str:
        """Command list in the format @BotFather /setcommands expects."""
        return "\n".join(f"{f.command_token} - {f.name}" for f in self._folders)
