from __future__ import annotations

import re
from dataclasses import dataclass


EMPTY_MENTION_TEXT = "(no message, just a mention)"

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class MentionResult:
    mentioned: bool
    stripped_text: str


def _handle(bot_username: str) -> str:
    return bot_username.strip().lstrip("@")


def is_mentioned(text: str, bot_username: str) -> bool:
    handle = _handle(bot_username)
    if not handle:
        return False
    return f"@{handle.lower()}" in text.lower()


def strip_bot_mention(text: str, bot_username: str) -> str:
    handle = _handle(bot_username)
    if handle:
        pattern = re.compile(rf"@{re.escape(handle)}", re.IGNORECASE)
        text = pattern.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def detect_mention(text: str | None, bot_username: str) -> MentionResult:
    text = text or ""
    return MentionResult(
        mentioned=is_mentioned(text, bot_username),
        stripped_text=strip_bot_mention(text, bot_username),
    )


def completion_input(result: MentionResult) -> str:
    return result.stripped_text or EMPTY_MENTION_TEXT
