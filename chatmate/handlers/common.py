from __future__ import annotations

import logging
from typing import Any

from telegram import Message, Update, User
from telegram.ext import ContextTypes

from chatmate.i18n import t
from chatmate.models import IncomingMessage, Locale, MemberInput
from chatmate.runtime import RuntimeContext

logger = logging.getLogger("bot")


def _runtime(context: ContextTypes.DEFAULT_TYPE) -> RuntimeContext:
    return context.application.bot_data["runtime"]


def member_from_user(user: User) -> MemberInput:
    return MemberInput(
        user_id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        username=user.username,
        is_bot=bool(user.is_bot),
        language_code=user.language_code,
    )


def incoming_from_message(message: Message) -> IncomingMessage | None:
    if not message.from_user:
        return None
    reply_to = message.reply_to_message
    return IncomingMessage(
        chat_id=message.chat_id,
        chat_title=message.chat.title,
        message_id=message.message_id,
        sender=member_from_user(message.from_user),
        text=message.text or message.caption or "",
        reply_text=(reply_to.text or reply_to.caption) if reply_to else None,
    )


def _is_allowed(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    chat = update.effective_chat
    if not chat:
        return False
    if _runtime(context).allowed_chats.allows(chat.id):
        return True
    logger.info("ignoring update from chat outside allow-list chat_id=%s title=%r", chat.id, chat.title)
    return False


async def reply(
    context: ContextTypes.DEFAULT_TYPE,
    chat_id: int,
    text: str,
    reply_to_message_id: int | None = None,
    reply_markup: Any | None = None,
) -> None:
    try:
        await context.bot.send_message(
            chat_id=chat_id,
            text=text,
            reply_to_message_id=reply_to_message_id,
            reply_markup=reply_markup,
        )
    except Exception:
        logger.exception("Failed to send reply chat_id=%s", chat_id)


async def reply_generic_error(context: ContextTypes.DEFAULT_TYPE, chat_id: int, locale: Locale) -> None:
    await reply(context, chat_id, t(locale, "generic_error"))


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Unhandled error while processing update=%r", update, exc_info=context.error)
