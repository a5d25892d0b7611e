from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from chatmate.chat_state import ChatStateStore
from chatmate.errors import CompletionError, PersistenceError
from chatmate.i18n import initial_locale_from_user, t
from chatmate.intents import CommandInferencer
from chatmate.members import MemberDirectory, display_name
from chatmate.mention import completion_input, detect_mention
from chatmate.models import DEFAULT_LOCALE, IncomingMessage, InferredCommand, Locale, MemberInput
from chatmate.placeholders import PlaceholderResolver, ResolveContext
from chatmate.prompt import build_system_prompt, build_user_text


class Completer(Protocol):
    async def complete(self, system_prompt: str, user_text: str) -> str: ...


@dataclass(frozen=True)
class PipelineResult:
    mentioned: bool
    reply_text: str | None = None
    inferred_command: InferredCommand = InferredCommand.NONE
    failed: bool = False


class MessagePipeline:
    """Inbound message -> mention check -> completion -> intent -> placeholders."""

    def __init__(
        self,
        chat_state: ChatStateStore,
        members: MemberDirectory,
        completer: Completer,
        resolver: PlaceholderResolver,
        inferencer: CommandInferencer | None = None,
    ) -> None:
        self._chat_state = chat_state
        self._members = members
        self._completer = completer
        self._resolver = resolver
        self._inferencer = inferencer or CommandInferencer()
        self._logger = logging.getLogger("pipeline")

    async def track(self, chat_id: int, user: MemberInput) -> bool:
        """Chat and member bookkeeping. Never raises PersistenceError."""
        if user.is_bot:
            return False
        try:
            await self._chat_state.ensure_once(chat_id, initial_locale_from_user(user))
        except PersistenceError:
            self._logger.exception("ensure chat failed chat_id=%s", chat_id)
            return False
        try:
            await self._members.upsert(chat_id, user)
        except PersistenceError:
            self._logger.exception("member upsert failed chat_id=%s user_id=%s", chat_id, user.user_id)
            return False
        return True

    async def locale_for(self, chat_id: int) -> Locale:
        try:
            return await self._chat_state.get_locale(chat_id)
        except PersistenceError:
            self._logger.exception("locale read failed chat_id=%s", chat_id)
            return DEFAULT_LOCALE

    async def process(self, message: IncomingMessage, bot_username: str) -> PipelineResult:
        if message.sender.is_bot:
            return PipelineResult(mentioned=False)
        await self.track(message.chat_id, message.sender)

        mention = detect_mention(message.text, bot_username)
        if not mention.mentioned:
            return PipelineResult(mentioned=False)

        locale = await self.locale_for(message.chat_id)
        self._logger.info(
            "mention chat_id=%s user_id=%s locale=%s chars=%s",
            message.chat_id,
            message.sender.user_id,
            locale.value,
            len(mention.stripped_text),
        )
        try:
            raw = await self._completer.complete(
                build_system_prompt(locale),
                build_user_text(completion_input(mention), message.reply_text),
            )
        except CompletionError:
            self._logger.exception("completion failed chat_id=%s user_id=%s", message.chat_id, message.sender.user_id)
            return PipelineResult(mentioned=True, reply_text=t(locale, "ai_error"), failed=True)

        reply = self._inferencer.infer(raw)
        text = await self._resolver.resolve(
            reply,
            ResolveContext(chat_id=message.chat_id, sender_display_name=display_name(message.sender)),
        )
        self._logger.info(
            "reply ready chat_id=%s command=%s chars=%s",
            message.chat_id,
            reply.inferred_command.value,
            len(text),
        )
        return PipelineResult(mentioned=True, reply_text=text, inferred_command=reply.inferred_command)
