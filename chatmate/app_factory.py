from __future__ import annotations

import httpx
from telegram.ext import Application, ApplicationBuilder, ChatMemberHandler, CommandHandler, MessageHandler, filters

from chatmate.chat_state import ChatStateCache, ChatStateStore
from chatmate.completion import CompletionClient
from chatmate.config import AppConfig
from chatmate.handlers.commands import handle_birthday, handle_language, handle_nominate, handle_start
from chatmate.handlers.common import handle_error
from chatmate.handlers.membership import handle_bot_membership, handle_new_members
from chatmate.handlers.messages import handle_group_message
from chatmate.locale_conversation import LocaleConversation
from chatmate.members import MemberDirectory
from chatmate.pipeline import MessagePipeline
from chatmate.placeholders import PlaceholderResolver
from chatmate.runtime import RuntimeContext
from chatmate.storage import Storage


def register_handlers(application: Application) -> None:
    application.add_handler(CommandHandler("start", handle_start))
    application.add_handler(CommandHandler(["language", "lang"], handle_language))
    application.add_handler(CommandHandler(["birthday", "bday"], handle_birthday))
    application.add_handler(CommandHandler("nominate", handle_nominate))
    application.add_handler(ChatMemberHandler(handle_bot_membership, ChatMemberHandler.MY_CHAT_MEMBER))
    application.add_handler(MessageHandler(filters.StatusUpdate.NEW_CHAT_MEMBERS, handle_new_members))
    application.add_handler(
        MessageHandler((filters.TEXT | filters.CAPTION) & (~filters.COMMAND), handle_group_message)
    )
    application.add_error_handler(handle_error)


def build_application(config: AppConfig) -> Application:
    application = ApplicationBuilder().token(config.telegram_bot_token).concurrent_updates(True).build()
    register_handlers(application)
    return application


def build_runtime(
    config: AppConfig,
    *,
    bot_username: str,
    http_client: httpx.AsyncClient | None = None,
) -> RuntimeContext:
    storage = Storage(config.database_path)
    chat_state = ChatStateStore(storage, ChatStateCache())
    members = MemberDirectory(storage)
    completion_client = CompletionClient(config.completion, http_client=http_client)
    pipeline = MessagePipeline(
        chat_state=chat_state,
        members=members,
        completer=completion_client,
        resolver=PlaceholderResolver(members),
    )
    return RuntimeContext(
        bot_username=bot_username,
        storage=storage,
        chat_state=chat_state,
        members=members,
        completion_client=completion_client,
        pipeline=pipeline,
        locale_conversation=LocaleConversation(chat_state),
        allowed_chats=config.allowed_chats,
    )
