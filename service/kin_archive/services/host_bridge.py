"""
Telegram WebApp host bridge, as seen from the server.

The Mini App forwards its raw initData. When it is present and correctly
signed, callers get a TelegramHostBridge that knows the user and launch
parameter and can reach the user through the bot. Without initData they get
NullHostBridge, whose actions all report failure instead of raising.
"""

import hashlib
import hmac
import json
from typing import Any, Optional, Protocol
from urllib.parse import parse_qsl

import httpx

from kin_archive.logging_config import service_logger as logger
from kin_archive.telegram_bot.telegram_api import send_message, send_message_with_link_button


class InitDataError(ValueError):
    """initData is missing its hash, badly signed or has no user."""


class HostBridge(Protocol):
    available: bool

    @property
    def launch_param(self) -> Optional[str]: ...

    @property
    def user_first_name(self) -> Optional[str]: ...

    async def show_alert(self, text: str) -> bool: ...

    async def send_link(self, text: str, link: str) -> bool: ...


def validate_telegram_init_data(init_data: str, bot_token: str) -> dict[str, Any]:
    """
    Validate Telegram Mini App initData using HMAC-SHA-256.
    Returns all parsed fields (user decoded from JSON) if valid.
    """
    # Parse init_data as URL query string
    parsed = dict(parse_qsl(init_data, keep_blank_values=True))

    if "hash" not in parsed:
        raise InitDataError("Missing hash in init_data")

    received_hash = parsed.pop("hash")

    # Sort and create data-check-string
    data_check_string = "\n".join(
        f"{k}={v}" for k, v in sorted(parsed.items())
    )

    # Create secret key: HMAC-SHA256(bot_token, "WebAppData")
    secret_key = hmac.new(
        b"WebAppData",
        bot_token.encode(),
        hashlib.sha256
    ).digest()

    # Calculate hash
    calculated_hash = hmac.new(
        secret_key,
        data_check_string.encode(),
        hashlib.sha256
    ).hexdigest()

    if not hmac.compare_digest(calculated_hash, received_hash):
        raise InitDataError("Invalid init_data signature")

    # Parse user JSON
    if "user" not in parsed:
        raise InitDataError("Missing user in init_data")

    try:
        parsed["user"] = json.loads(parsed["user"])
    except json.JSONDecodeError:
        raise InitDataError("Invalid user JSON")

    return parsed


class NullHostBridge:
    available = False

    @property
    def launch_param(self) -> Optional[str]:
        return None

    @property
    def user_first_name(self) -> Optional[str]:
        return None

    async def show_alert(self, text: str) -> bool:
        return False

    async def send_link(self, text: str, link: str) -> bool:
        return False


class TelegramHostBridge:
    available = True

    def __init__(self, init_data: dict[str, Any], bot_token: str, client: Optional[httpx.AsyncClient] = None):
        self.init_data = init_data
        self.user: dict[str, Any] = init_data.get("user") or {}
        self.bot_token = bot_token
        self.client = client

    @classmethod
    def from_init_data(cls, raw_init_data: str, bot_token: str) -> "TelegramHostBridge":
        return cls(validate_telegram_init_data(raw_init_data, bot_token), bot_token)

    @property
    def launch_param(self) -> Optional[str]:
        return self.init_data.get("start_param") or None

    @property
    def user_first_name(self) -> Optional[str]:
        return self.user.get("first_name") or None

    @property
    def user_id(self) -> Optional[int]:
        return self.user.get("id")

    async def show_alert(self, text: str) -> bool:
        if not self.user_id:
            return False
        try:
            await send_message(self.bot_token, self.user_id, text, client=self.client)
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Alert to {self.user_id} not delivered: {e}")
            return False

    async def send_link(self, text: str, link: str) -> bool:
        if not self.user_id:
            return False
        try:
            await send_message_with_link_button(
                self.bot_token, self.user_id, text, "Открыть", link, client=self.client
            )
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Link to {self.user_id} not delivered: {e}")
            return False


def resolve_host_bridge(raw_init_data: Optional[str], bot_token: str) -> HostBridge:
    """
    Bridge for a request.

    No initData, or no bot token to check it against, gives NullHostBridge.
    Badly signed initData raises InitDataError.
    """
    if not raw_init_data:
        return NullHostBridge()
    if not bot_token:
        logger.warning("initData received but TELEGRAM_BOT_TOKEN is not set, ignoring it")
        return NullHostBridge()
    return TelegramHostBridge.from_init_data(raw_init_data, bot_token)
