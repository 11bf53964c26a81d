"""
Deep links API.

Outbound links for the share buttons and inbound launch resolution.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from kin_archive.agents.schemas import LinkResponse, NavigationResponse, ShareRequest, ShareResponse
from kin_archive.config import get_settings
from kin_archive.dependencies import Services, get_services
from kin_archive.middleware.auth import get_host_bridge
from kin_archive.services.deep_links import NavigationState, build_fragment_link, build_link
from kin_archive.services.host_bridge import HostBridge

router = APIRouter(tags=["links"])


def navigation_response(state: NavigationState) -> NavigationResponse:
    return NavigationResponse(
        view=state.view.value,
        folder=state.folder,
        highlighted_document_id=state.highlighted_document_id
    )


@router.get("/links", response_model=LinkResponse)
async def get_link(
    param: Optional[str] = None,
    services: Services = Depends(get_services)
):
    """Mini App link; param is a folder id, command or document id."""
    return LinkResponse(link=build_link(services.preferences.get_bot_username(), param))


@router.get("/links/document/{document_id}", response_model=LinkResponse)
async def get_document_link(
    document_id: str,
    services: Services = Depends(get_services)
):
    if services.archive.get(document_id) is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return LinkResponse(link=build_fragment_link(document_id, get_settings().mini_app_url))


@router.get("/links/commands")
async def get_botfather_commands(services: Services = Depends(get_services)):
    """Command list to paste into @BotFather /setcommands."""
    return {"commands": services.registry.botfather_commands()}


@router.post("/links/share", response_model=ShareResponse)
async def share_link(
    share_request: ShareRequest,
    services: Services = Depends(get_services),
    bridge: HostBridge = Depends(get_host_bridge)
):
    """
    Build a link and send it to the user's chat.

    delivered is False when there is no host bridge or the bot could not
    reach the user; the link is returned either way.
    """
    link = build_link(services.preferences.get_bot_username(), share_request.param)
    delivered = await bridge.send_link(share_request.message, link)
    return ShareResponse(link=link, delivered=delivered)


@router.get("/launch", response_model=NavigationResponse)
async def resolve_launch(
    start_param: Optional[str] = None,
    fragment: Optional[str] = None,
    services: Services = Depends(get_services),
    bridge: HostBridge = Depends(get_host_bridge)
):
    """
    Where the Mini App should open.

    start_param defaults to the one in the validated initData. Unknown
    parameters resolve to the main view.
    """
    state = services.resolver.resolve_incoming(
        start_param=start_param or bridge.launch_param,
        fragment=fragment
    )
    return navigation_response(state)
