from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Locale(str, Enum):
    EN = "en"
    IT = "it"


DEFAULT_LOCALE = Locale.EN


class InferredCommand(str, Enum):
    NONE = "none"
    NOMINATE = "nominate"


@dataclass
class Chat:
    chat_id: int
    locale: Locale
    created_at: str


@dataclass
class ChatMember:
    chat_id: int
    user_id: int
    first_name: str | None
    last_name: str | None
    username: str | None
    birthday: str | None = None


@dataclass(frozen=True)
class MemberInput:
    user_id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    is_bot: bool = False
    language_code: str | None = None


@dataclass(frozen=True)
class AiReply:
    response_text: str
    inferred_command: InferredCommand = InferredCommand.NONE


@dataclass(frozen=True)
class IncomingMessage:
    chat_id: int
    chat_title: str | None
    message_id: int
    sender: MemberInput
    text: str
    reply_text: str | None = None
