from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from chatmate.models import ChatMember, MemberInput


class MemberBackend(Protocol):
    def upsert_member(self, chat_id: int, user: MemberInput) -> None: ...

    def list_members(self, chat_id: int) -> list[ChatMember]: ...

    def set_birthday(self, chat_id: int, user_id: int, iso_date: str) -> None: ...


def _name_parts(first_name: str | None, last_name: str | None) -> str:
    return " ".join(part.strip() for part in (first_name, last_name) if part and part.strip())


def display_name(user: MemberInput | ChatMember) -> str:
    full_name = _name_parts(user.first_name, user.last_name)
    if full_name:
        return full_name
    if user.username:
        return f"@{user.username}"
    return f"user {user.user_id}"


def mention_label(member: ChatMember) -> str:
    if member.username:
        return f"@{member.username}"
    full_name = _name_parts(member.first_name, member.last_name)
    if full_name:
        return full_name
    return f"user {member.user_id}"


class MemberDirectory:
    """Chat roster backed by the persistent store.

    Upserts are idempotent and need no coordination. Callers on the reply path
    catch PersistenceError themselves.
    """

    def __init__(self, backend: MemberBackend) -> None:
        self._backend = backend
        self._logger = logging.getLogger("members")

    async def upsert(self, chat_id: int, user: MemberInput) -> None:
        await asyncio.to_thread(self._backend.upsert_member, chat_id, user)
        self._logger.debug("member upserted chat_id=%s user_id=%s", chat_id, user.user_id)

    async def list(self, chat_id: int) -> list[ChatMember]:
        return await asyncio.to_thread(self._backend.list_members, chat_id)

    async def set_birthday(self, chat_id: int, user_id: int, iso_date: str) -> None:
        await asyncio.to_thread(self._backend.set_birthday, chat_id, user_id, iso_date)
        self._logger.info("birthday saved chat_id=%s user_id=%s", chat_id, user_id)
