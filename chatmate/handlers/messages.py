from __future__ import annotations

import logging

from telegram import ReplyKeyboardRemove, Update
from telegram.ext import ContextTypes

from chatmate.handlers.common import _is_allowed, _runtime, incoming_from_message, reply
from chatmate.handlers.keyboards import locale_keyboard
from chatmate.i18n import t

logger = logging.getLogger("bot")


async def handle_group_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    if not message or not _is_allowed(update, context):
        return
    incoming = incoming_from_message(message)
    if incoming is None or incoming.sender.is_bot:
        return
    runtime = _runtime(context)
    logger.info(
        "msg chat_id=%s title=%r user_id=%s username=%r chars=%s",
        incoming.chat_id,
        incoming.chat_title,
        incoming.sender.user_id,
        incoming.sender.username,
        len(incoming.text),
    )

    conversation = runtime.locale_conversation
    if message.text and conversation.is_awaiting(incoming.chat_id):
        await runtime.pipeline.track(incoming.chat_id, incoming.sender)
        try:
            step = await conversation.feed(incoming.chat_id, message.text)
        except Exception:
            logger.exception("locale dialogue failed chat_id=%s", incoming.chat_id)
            locale = await runtime.pipeline.locale_for(incoming.chat_id)
            await reply(context, incoming.chat_id, t(locale, "generic_error"), reply_to_message_id=incoming.message_id)
            return
        if step is not None:
            markup = locale_keyboard() if step.show_choices else ReplyKeyboardRemove()
            await reply(context, incoming.chat_id, step.text, reply_to_message_id=incoming.message_id, reply_markup=markup)
            return

    try:
        result = await runtime.pipeline.process(incoming, runtime.bot_username)
    except Exception:
        logger.exception("message pipeline failed chat_id=%s user_id=%s", incoming.chat_id, incoming.sender.user_id)
        locale = await runtime.pipeline.locale_for(incoming.chat_id)
        await reply(context, incoming.chat_id, t(locale, "ai_error"), reply_to_message_id=incoming.message_id)
        return
    if result.reply_text:
        await reply(context, incoming.chat_id, result.reply_text, reply_to_message_id=incoming.message_id)
