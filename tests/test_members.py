from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from chatmate.errors import PersistenceError
from chatmate.members import MemberDirectory, display_name, mention_label
from chatmate.models import ChatMember, Locale, MemberInput
from chatmate.storage import Storage


def _directory(tmp_path: Path, *chat_ids: int) -> tuple[Storage, MemberDirectory]:
    storage = Storage(tmp_path / "members.sqlite3")
    for chat_id in chat_ids:
        storage.ensure_chat(chat_id, Locale.EN)
    return storage, MemberDirectory(storage)


def test_upsert_then_list_includes_member(tmp_path: Path) -> None:
    _, directory = _directory(tmp_path, -100)
    user = MemberInput(user_id=1, first_name="Ada", last_name="Lovelace", username="ada")

    async def scenario() -> list[ChatMember]:
        await directory.upsert(-100, user)
        return await directory.list(-100)

    members = asyncio.run(scenario())
    assert [(m.chat_id, m.user_id, m.first_name, m.last_name, m.username) for m in members] == [
        (-100, 1, "Ada", "Lovelace", "ada")
    ]


def test_repeated_upserts_converge_to_latest_fields(tmp_path: Path) -> None:
    _, directory = _directory(tmp_path, -100)

    async def scenario() -> list[ChatMember]:
        await directory.upsert(-100, MemberInput(user_id=1, first_name="Ada", username="ada"))
        await directory.upsert(-100, MemberInput(user_id=1, first_name="Ada"))
        await directory.upsert(-100, MemberInput(user_id=1, first_name="Augusta", last_name="King", username="countess"))
        return await directory.list(-100)

    members = asyncio.run(scenario())
    assert len(members) == 1
    assert (members[0].first_name, members[0].last_name, members[0].username) == ("Augusta", "King", "countess")


def test_concurrent_upserts_do_not_duplicate(tmp_path: Path) -> None:
    _, directory = _directory(tmp_path, -100)

    async def scenario() -> list[ChatMember]:
        await asyncio.gather(
            *(directory.upsert(-100, MemberInput(user_id=user_id % 3, first_name="x")) for user_id in range(12))
        )
        return await directory.list(-100)

    assert sorted(m.user_id for m in asyncio.run(scenario())) == [0, 1, 2]


def test_rosters_are_per_chat(tmp_path: Path) -> None:
    _, directory = _directory(tmp_path, 1, 2)

    async def scenario() -> tuple[list[ChatMember], list[ChatMember]]:
        await directory.upsert(1, MemberInput(user_id=10))
        await directory.upsert(2, MemberInput(user_id=20))
        return await directory.list(1), await directory.list(2)

    first, second = asyncio.run(scenario())
    assert [m.user_id for m in first] == [10]
    assert [m.user_id for m in second] == [20]


def test_member_requires_existing_chat(tmp_path: Path) -> None:
    _, directory = _directory(tmp_path)

    with pytest.raises(PersistenceError):
        asyncio.run(directory.upsert(999, MemberInput(user_id=1)))


def test_birthday_survives_name_upserts(tmp_path: Path) -> None:
    _, directory = _directory(tmp_path, -5)

    async def scenario() -> list[ChatMember]:
        await directory.upsert(-5, MemberInput(user_id=3, first_name="Bo"))
        await directory.set_birthday(-5, 3, "1990-05-04")
        await directory.upsert(-5, MemberInput(user_id=3, first_name="Bob"))
        return await directory.list(-5)

    (member,) = asyncio.run(scenario())
    assert member.first_name == "Bob"
    assert member.birthday == "1990-05-04"


def test_set_birthday_for_unknown_member_fails(tmp_path: Path) -> None:
    _, directory = _directory(tmp_path, -5)

    with pytest.raises(PersistenceError):
        asyncio.run(directory.set_birthday(-5, 404, "1990-05-04"))


def test_display_name_fallbacks() -> None:
    assert display_name(MemberInput(user_id=1, first_name="Ada", last_name="Lovelace", username="ada")) == "Ada Lovelace"
    assert display_name(MemberInput(user_id=1, last_name="Lovelace")) == "Lovelace"
    assert display_name(MemberInput(user_id=1, username="ada")) == "@ada"
    assert display_name(MemberInput(user_id=77)) == "user 77"


def test_mention_label_prefers_username() -> None:
    member = ChatMember(chat_id=1, user_id=5, first_name="Ada", last_name=None, username="ada")
    assert mention_label(member) == "@ada"
    member = ChatMember(chat_id=1, user_id=5, first_name="Ada", last_name=" ", username=None)
    assert mention_label(member) == "Ada"
    member = ChatMember(chat_id=1, user_id=5, first_name=None, last_name=None, username=None)
    assert mention_label(member) == "user 5"
