"""
Chat API for the chat-style Mini App screen.

The transcript lives in memory only; documents referenced from it are in
the archive.
"""

from fastapi import APIRouter, Depends

from kin_archive.agents.schemas import ChatMessage, ChatPostRequest
from kin_archive.dependencies import Services, get_services

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/messages", response_model=list[ChatMessage])
async def get_messages(services: Services = Depends(get_services)):
    return services.chat_log.messages


@router.post("/messages", response_model=list[ChatMessage])
async def post_message(
    chat_request: ChatPostRequest,
    services: Services = Depends(get_services)
):
    """Returns the messages this post added (user message, optional reply)."""
    return services.chat_log.post_text(chat_request.text)
