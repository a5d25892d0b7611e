from __future__ import annotations

import logging
import random

from telegram import ReplyKeyboardRemove, Update
from telegram.ext import ContextTypes

from chatmate.birthdays import parse_birthday
from chatmate.errors import PersistenceError, ValidationError
from chatmate.handlers.common import _is_allowed, _runtime, member_from_user, reply, reply_generic_error
from chatmate.handlers.keyboards import locale_keyboard
from chatmate.i18n import initial_locale_from_user, locale_label, normalize_locale, t
from chatmate.members import display_name
from chatmate.models import DEFAULT_LOCALE

logger = logging.getLogger("bot")


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message or not update.effective_user or not _is_allowed(update, context):
        return
    runtime = _runtime(context)
    chat_id = update.message.chat_id
    user = member_from_user(update.effective_user)
    try:
        await runtime.chat_state.ensure(chat_id, initial_locale_from_user(user))
        if not user.is_bot:
            await runtime.members.upsert(chat_id, user)
    except PersistenceError:
        logger.exception("start setup failed chat_id=%s", chat_id)
        await reply_generic_error(context, chat_id, initial_locale_from_user(user))
        return
    locale = await runtime.pipeline.locale_for(chat_id)
    await reply(context, chat_id, t(locale, "welcome", bot_username=runtime.bot_username))


async def handle_language(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message or not update.effective_user or not _is_allowed(update, context):
        return
    runtime = _runtime(context)
    chat_id = update.message.chat_id
    user = member_from_user(update.effective_user)
    await runtime.pipeline.track(chat_id, user)

    conversation = runtime.locale_conversation
    raw = " ".join(context.args or []).strip()
    if raw:
        conversation.cancel(chat_id)
        locale = await runtime.pipeline.locale_for(chat_id)
        selected = normalize_locale(raw)
        if selected is None:
            await reply(context, chat_id, t(locale, "language_invalid"), reply_to_message_id=update.message.message_id)
            return
        try:
            await runtime.chat_state.set_locale(chat_id, selected)
        except PersistenceError:
            logger.exception("locale update failed chat_id=%s", chat_id)
            await reply_generic_error(context, chat_id, locale)
            return
        await reply(context, chat_id, t(selected, "language_set", language=locale_label(selected)))
        return

    try:
        step = await conversation.begin(chat_id, initial_locale_from_user(user))
    except PersistenceError:
        logger.exception("locale dialogue start failed chat_id=%s", chat_id)
        await reply_generic_error(context, chat_id, DEFAULT_LOCALE)
        return
    await reply(
        context,
        chat_id,
        step.text,
        reply_to_message_id=update.message.message_id,
        reply_markup=locale_keyboard() if step.show_choices else ReplyKeyboardRemove(),
    )


async def handle_birthday(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message or not update.effective_user or not _is_allowed(update, context):
        return
    runtime = _runtime(context)
    chat_id = update.message.chat_id
    user = member_from_user(update.effective_user)
    try:
        await runtime.chat_state.ensure_once(chat_id, initial_locale_from_user(user))
    except PersistenceError:
        logger.exception("ensure chat failed chat_id=%s", chat_id)
        await reply_generic_error(context, chat_id, initial_locale_from_user(user))
        return
    locale = await runtime.pipeline.locale_for(chat_id)

    arg = " ".join(context.args or []).strip()
    if not arg:
        await reply(context, chat_id, t(locale, "birthday_help"), reply_to_message_id=update.message.message_id)
        return
    try:
        birthday = parse_birthday(arg)
    except ValidationError:
        await reply(context, chat_id, t(locale, "birthday_invalid"), reply_to_message_id=update.message.message_id)
        return
    try:
        await runtime.members.upsert(chat_id, user)
        await runtime.members.set_birthday(chat_id, user.user_id, birthday)
    except PersistenceError:
        logger.exception("birthday save failed chat_id=%s user_id=%s", chat_id, user.user_id)
        await reply_generic_error(context, chat_id, locale)
        return
    await reply(context, chat_id, t(locale, "birthday_saved", date=birthday), reply_to_message_id=update.message.message_id)


async def handle_nominate(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message or not update.effective_user or not _is_allowed(update, context):
        return
    runtime = _runtime(context)
    chat_id = update.message.chat_id
    await runtime.pipeline.track(chat_id, member_from_user(update.effective_user))
    locale = await runtime.pipeline.locale_for(chat_id)
    try:
        members = await runtime.members.list(chat_id)
    except PersistenceError:
        logger.exception("member lookup failed chat_id=%s", chat_id)
        members = []
    if not members:
        await reply(context, chat_id, t(locale, "nominate_no_candidates"))
        return
    chosen = random.choice(members)
    await reply(context, chat_id, t(locale, "nominate_result", name=display_name(chosen)))
