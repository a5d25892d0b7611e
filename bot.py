from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from telegram import BotCommand, Update
from telegram.ext import Application

from chatmate.app_factory import build_application, build_runtime
from chatmate.config import AppConfig, load_config, load_environment


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
# httpx logs full request URLs, which include the bot token
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger("bot")

BOT_COMMANDS = [
    BotCommand("start", "Set up the bot in this chat"),
    BotCommand("language", "Choose the chat language"),
    BotCommand("birthday", "Save your birthday"),
    BotCommand("nominate", "Pick a random member"),
]


async def serve(application: Application, config: AppConfig) -> None:
    await application.initialize()
    runtime = None
    try:
        me = await application.bot.get_me()
        runtime = build_runtime(config, bot_username=me.username or "")
        application.bot_data.update(runtime.to_bot_data())
        await application.bot.set_my_commands(BOT_COMMANDS)
        await application.start()
        if config.webhook_mode:
            await application.updater.start_webhook(
                listen="0.0.0.0",
                port=config.webhook_port,
                url_path=config.telegram_bot_token,
                webhook_url=f"{config.webhook_url.rstrip('/')}/{config.telegram_bot_token}",
                secret_token=config.webhook_secret or None,
                allowed_updates=Update.ALL_TYPES,
            )
            logger.info("Bot started as @%s (webhook on port %s)", me.username, config.webhook_port)
        else:
            await application.updater.start_polling(allowed_updates=Update.ALL_TYPES)
            logger.info("Bot started as @%s (polling)", me.username)
        await asyncio.Event().wait()
    finally:
        if application.updater.running:
            await application.updater.stop()
        if application.running:
            await application.stop()
        if runtime is not None:
            await runtime.completion_client.aclose()
            runtime.storage.close()
        await application.shutdown()


async def main() -> None:
    env_values = load_environment(Path(__file__).with_name(".env"))
    config = load_config(env_values)
    if not len(config.allowed_chats):
        logger.warning("ALLOWED_CHAT_IDS is empty; every chat will be ignored")
    await serve(build_application(config), config)


if __name__ == "__main__":
    asyncio.run(main())
