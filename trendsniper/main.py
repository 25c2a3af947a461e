from __future__ import annotations

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import BotCommand

from trendsniper.bot.handlers import router
from trendsniper.bot.wizard import WizardEngine, WizardStore
from trendsniper.bot.wizards import WIZARDS
from trendsniper.core.config import get_settings
from trendsniper.core.container import build_hub
from trendsniper.core.logging import setup_logging
from trendsniper.workers.scheduler import WorkerScheduler

logger = logging.getLogger(__name__)

BOT_COMMANDS = [
    BotCommand(command="start", description="Open the main menu"),
    BotCommand(command="watchlist", description="Manage watchlists"),
    BotCommand(command="analysis", description="Chart a coin"),
    BotCommand(command="alerts", description="Alerts menu"),
    BotCommand(command="discover", description="Discover coins"),
    BotCommand(command="addcoin", description="Add a coin to a watchlist"),
    BotCommand(command="addalert", description="Create an alert"),
    BotCommand(command="cancel", description="Cancel the current action"),
]


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    if not settings.telegram_bot_token:
        logger.error("bot_token_missing", extra={"event": "bot_token_missing"})
        raise SystemExit(1)

    hub = build_hub(settings)
    engine = WizardEngine(hub, WIZARDS, WizardStore(hub.cache, WIZARDS, ttl=settings.wizard_ttl_sec))
    bot = Bot(token=settings.telegram_bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher(hub=hub, engine=engine)
    dp.include_router(router)

    scheduler = WorkerScheduler(hub)
    try:
        await bot.set_my_commands(BOT_COMMANDS)
        await bot.delete_webhook(drop_pending_updates=settings.drop_pending_updates)
        scheduler.start()
        logger.info("bot_started", extra={"event": "bot_started"})
        await dp.start_polling(bot)
    finally:
        scheduler.stop()
        await hub.close()
        await bot.session.close()
        logger.info("bot_stopped", extra={"event": "bot_stopped"})


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
