from typing import Optional

from fastapi import Header, HTTPException

from kin_archive.config import get_settings
from kin_archive.logging_config import service_logger as logger
from kin_archive.services.host_bridge import HostBridge, InitDataError, resolve_host_bridge


async def get_host_bridge(
    x_telegram_init_data: Optional[str] = Header(None)
) -> HostBridge:
    """
    Host bridge for the calling Mini App.

    The app sends Telegram.WebApp.initData in X-Telegram-Init-Data. Requests
    without it (browser preview, tests) get the null bridge.
    """
    settings = get_settings()

    try:
        return resolve_host_bridge(x_telegram_init_data, settings.telegram_bot_token)
    except InitDataError as e:
        logger.warning(f"initData rejected: {e}")
        raise HTTPException(
            status_code=401,
            detail="Invalid Telegram init data"
        )
