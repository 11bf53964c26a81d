"""
Folders API.

Main view data: every folder with its document count and deep link, and
the most-recent-first document list of one folder.
"""

from fastapi import APIRouter, Depends, HTTPException

from kin_archive.agents.schemas import Document, FolderSummary
from kin_archive.dependencies import Services, get_services
from kin_archive.folders import Folder
from kin_archive.services.deep_links import build_link

router = APIRouter(prefix="/folders", tags=["folders"])


def find_folder_or_404(services: Services, token: str) -> Folder:
    folder = services.registry.find(token)
    if folder is None:
        raise HTTPException(status_code=404, detail="Folder not found")
    return folder


@router.get("", response_model=list[FolderSummary])
async def list_folders(services: Services = Depends(get_services)):
    bot_username = services.preferences.get_bot_username()
    counts = services.archive.counts()

    return [
        FolderSummary(
            id=folder.id,
            name=folder.name,
            description=folder.description,
            color=folder.color,
            icon=folder.icon,
            command=folder.command,
            count=counts.get(folder.id, 0),
            link=build_link(bot_username, folder.command)
        )
        for folder in services.registry
    ]


@router.get("/{folder_id}/documents", response_model=list[Document])
async def list_folder_documents(
    folder_id: str,
    services: Services = Depends(get_services)
):
    """Accepts a folder id or its command token."""
    folder = find_folder_or_404(services, folder_id)
    return services.archive.list_by_folder(folder.id)
