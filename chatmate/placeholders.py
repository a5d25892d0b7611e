from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import Protocol

from chatmate.members import mention_label
from chatmate.models import AiReply, ChatMember, InferredCommand

RANDOM_USER_PLACEHOLDER = "[random_user]"
FALLBACK_LABEL = "someone"

_PLACEHOLDER_PATTERN = re.compile(re.escape(RANDOM_USER_PLACEHOLDER), re.IGNORECASE)


class Roster(Protocol):
    async def list(self, chat_id: int) -> list[ChatMember]: ...


@dataclass(frozen=True)
class ResolveContext:
    chat_id: int
    sender_display_name: str


class PlaceholderResolver:
    def __init__(self, roster: Roster, rng: random.Random | None = None) -> None:
        self._roster = roster
        self._rng = rng or random.Random()
        self._logger = logging.getLogger("placeholders")

    async def resolve(self, reply: AiReply, context: ResolveContext) -> str:
        text = reply.response_text
        if reply.inferred_command is not InferredCommand.NOMINATE:
            return text
        if not _PLACEHOLDER_PATTERN.search(text):
            return text
        label = await self._pick_label(context)
        # one draw per message, every occurrence gets the same label
        return _PLACEHOLDER_PATTERN.sub(lambda _: label, text)

    async def _pick_label(self, context: ResolveContext) -> str:
        try:
            members = await self._roster.list(context.chat_id)
        except Exception:
            self._logger.exception("member lookup failed chat_id=%s", context.chat_id)
            members = []
        if not members:
            self._logger.info("empty roster, falling back to sender chat_id=%s", context.chat_id)
            return context.sender_display_name.strip() or FALLBACK_LABEL
        chosen = self._rng.choice(members)
        return mention_label(chosen)
