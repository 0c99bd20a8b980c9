import logging
from functools import lru_cache
from typing import Any, Dict

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from sqlalchemy.orm import Session

from app.config import settings
from app.services.storage import StorageClient
from app.telegram.handlers import router

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_bot() -> Bot:
    if not settings.telegram_bot_token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not configured")
    return Bot(token=settings.telegram_bot_token, default=DefaultBotProperties())


@lru_cache(maxsize=1)
def get_dispatcher() -> Dispatcher:
    dp = Dispatcher()
    logger.info("Including Telegram routers")
    dp.include_routers(router)
    return dp


async def feed_update(
    payload: Dict[str, Any],
    *,
    session: Session,
    storage: StorageClient,
    bot: Bot | None = None,
    dispatcher: Dispatcher | None = None,
) -> Any:
    """Dispatch one webhook update with request-scoped dependencies."""
    bot = bot or get_bot()
    dispatcher = dispatcher or get_dispatcher()
    return await dispatcher.feed_webhook_update(bot, payload, session=session, storage=storage)
