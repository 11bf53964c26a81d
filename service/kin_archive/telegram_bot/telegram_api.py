"""
Telegram Bot API client for sending messages.

Simple wrapper for sending messages back to Telegram outside of an update
handler (alerts and shared links from the Mini App).
"""

import httpx
from typing import Optional

TELEGRAM_API_URL = "https://api.telegram.org"


async def send_message(
    bot_token: str,
    chat_id: int,
    text: str,
    parse_mode: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> None:
    """
    Send message to Telegram user.

    Args:
        bot_token: Bot API token
        chat_id: Telegram chat ID
        text: Message text
        parse_mode: Optional parse mode (Markdown, HTML)
        client: Optional shared HTTP client
    """
    url = f"{TELEGRAM_API_URL}/bot{bot_token}/sendMessage"

    payload = {
        "chat_id": chat_id,
        "text": text
    }

    if parse_mode:
        payload["parse_mode"] = parse_mode

    if client is not None:
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return

    async with httpx.AsyncClient() as client:
        response = await client.post(url, json=payload)
        response.raise_for_status()


async def send_message_with_link_button(
    bot_token: str,
    chat_id: int,
    text: str,
    button_text: str,
    link: str,
    client: Optional[httpx.AsyncClient] = None
) -> dict:
    """
    Send message with a single URL button.

    URL buttons work in group chats, web_app buttons do not.

    Returns:
        Response dict with message_id
    """
    url = f"{TELEGRAM_API_URL}/bot{bot_token}/sendMessage"

    payload = {
        "chat_id": chat_id,
        "text": text,
        "reply_markup": {
            "inline_keyboard": [[{"text": button_text, "url": link}]]
        }
    }

    if client is not None:
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return response.json()

    async with httpx.AsyncClient() as client:
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return response.json()
