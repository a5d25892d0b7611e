from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from chatmate.errors import PersistenceError
from chatmate.handlers.common import _is_allowed, _runtime, member_from_user
from chatmate.i18n import initial_locale_from_user

logger = logging.getLogger("bot")


async def handle_bot_membership(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.my_chat_member or not update.effective_chat:
        return
    if not _is_allowed(update, context):
        return
    chat = update.effective_chat
    new_status = update.my_chat_member.new_chat_member.status
    logger.info("bot membership chat_id=%s title=%r status=%s", chat.id, chat.title, new_status)
    if new_status not in ("member", "administrator"):
        return
    actor = update.my_chat_member.from_user
    preferred = initial_locale_from_user(member_from_user(actor) if actor else None)
    try:
        await _runtime(context).chat_state.ensure(chat.id, preferred)
    except PersistenceError:
        logger.exception("ensure chat failed chat_id=%s", chat.id)


async def handle_new_members(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.message
    if not message or not message.new_chat_members or not _is_allowed(update, context):
        return
    runtime = _runtime(context)
    chat_id = message.chat_id
    actor = member_from_user(message.from_user) if message.from_user else None
    try:
        await runtime.chat_state.ensure(chat_id, initial_locale_from_user(actor))
    except PersistenceError:
        logger.exception("ensure chat failed chat_id=%s", chat_id)
        return
    for user in message.new_chat_members:
        if user.is_bot:
            continue
        try:
            await runtime.members.upsert(chat_id, member_from_user(user))
        except PersistenceError:
            logger.exception("member upsert failed chat_id=%s user_id=%s", chat_id, user.id)
    logger.info("new members chat_id=%s count=%s", chat_id, len(message.new_chat_members))
