from fastapi import APIRouter, Depends

from kin_archive.agents.schemas import BotUsernameRequest, BotUsernameResponse
from kin_archive.dependencies import Services, get_services
from kin_archive.services.deep_links import clean_bot_username

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/bot-username", response_model=BotUsernameResponse)
async def get_bot_username(services: Services = Depends(get_services)):
    return BotUsernameResponse(bot_username=services.preferences.get_bot_username())


@router.put("/bot-username", response_model=BotUsernameResponse)
async def set_bot_username(
    request: BotUsernameRequest,
    services: Services = Depends(get_services)
):
    """Username the deep links point to. A leading '@' is dropped."""
    saved = services.preferences.set_bot_username(clean_bot_username(request.bot_username))
    return BotUsernameResponse(bot_username=saved)
