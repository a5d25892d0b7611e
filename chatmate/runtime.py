from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from chatmate.chat_state import ChatStateStore
from chatmate.completion import CompletionClient
from chatmate.locale_conversation import LocaleConversation
from chatmate.members import MemberDirectory
from chatmate.pipeline import MessagePipeline
from chatmate.security import ChatAllowList
from chatmate.storage import Storage


@dataclass
class RuntimeContext:
    bot_username: str
    storage: Storage
    chat_state: ChatStateStore
    members: MemberDirectory
    completion_client: CompletionClient
    pipeline: MessagePipeline
    locale_conversation: LocaleConversation
    allowed_chats: ChatAllowList

    def to_bot_data(self) -> dict[str, Any]:
        return {"runtime": self}
