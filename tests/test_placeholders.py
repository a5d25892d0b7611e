from __future__ import annotations

import asyncio
import random
from collections import Counter

from chatmate.errors import PersistenceError
from chatmate.models import AiReply, ChatMember, InferredCommand
from chatmate.placeholders import FALLBACK_LABEL, PlaceholderResolver, ResolveContext


class FakeRoster:
    def __init__(self, members: list[ChatMember] | None = None, error: Exception | None = None) -> None:
        self.members = members or []
        self.error = error
        self.calls = 0

    async def list(self, chat_id: int) -> list[ChatMember]:
        self.calls += 1
        if self.error:
            raise self.error
        return [m for m in self.members if m.chat_id == chat_id]


def _member(user_id: int, username: str | None = None, first: str | None = None, last: str | None = None) -> ChatMember:
    return ChatMember(chat_id=1, user_id=user_id, first_name=first, last_name=last, username=username)


ROSTER = [
    _member(1, username="ada"),
    _member(2, first="Grace", last="Hopper"),
    _member(3, first="Linus"),
    _member(4),
    _member(5, username="ken", first="Ken"),
]
LABELS = ["@ada", "Grace Hopper", "Linus", "user 4", "@ken"]
CTX = ResolveContext(chat_id=1, sender_display_name="Sender Name")


def _nominate(text: str) -> AiReply:
    return AiReply(response_text=text, inferred_command=InferredCommand.NOMINATE)


def test_all_occurrences_get_the_same_label() -> None:
    resolver = PlaceholderResolver(FakeRoster(ROSTER), rng=random.Random(1))
    text = "[random_user] vs [RANDOM_USER] and [Random_User]"

    for _ in range(50):
        resolved = asyncio.run(resolver.resolve(_nominate(text), CTX))
        parts = resolved.replace(" vs ", "|").replace(" and ", "|").split("|")
        assert len(parts) == 3
        assert len(set(parts)) == 1
        assert parts[0] in LABELS


def test_selection_is_roughly_uniform() -> None:
    resolver = PlaceholderResolver(FakeRoster(ROSTER), rng=random.Random(12345))

    async def scenario() -> Counter[str]:
        counts: Counter[str] = Counter()
        for _ in range(5000):
            counts[await resolver.resolve(_nominate("[random_user]"), CTX)] += 1
        return counts

    counts = asyncio.run(scenario())
    assert set(counts) == set(LABELS)
    for label in LABELS:
        assert 800 <= counts[label] <= 1200


def test_no_placeholder_is_a_noop_without_lookup() -> None:
    roster = FakeRoster(ROSTER)
    resolver = PlaceholderResolver(roster)
    assert asyncio.run(resolver.resolve(_nominate("no names here"), CTX)) == "no names here"
    assert roster.calls == 0


def test_non_nominate_reply_is_untouched() -> None:
    roster = FakeRoster(ROSTER)
    resolver = PlaceholderResolver(roster)
    reply = AiReply(response_text="literally [random_user]")
    assert asyncio.run(resolver.resolve(reply, CTX)) == "literally [random_user]"
    assert roster.calls == 0


def test_empty_roster_falls_back_to_sender() -> None:
    resolver = PlaceholderResolver(FakeRoster([]))
    assert asyncio.run(resolver.resolve(_nominate("go [random_user]!"), CTX)) == "go Sender Name!"


def test_lookup_failure_falls_back_to_sender() -> None:
    resolver = PlaceholderResolver(FakeRoster(error=PersistenceError("db down")))
    assert asyncio.run(resolver.resolve(_nominate("[random_user]"), CTX)) == "Sender Name"


def test_blank_sender_falls_back_to_someone() -> None:
    resolver = PlaceholderResolver(FakeRoster([]))
    ctx = ResolveContext(chat_id=1, sender_display_name="  ")
    assert asyncio.run(resolver.resolve(_nominate("[random_user] pays"), ctx)) == f"{FALLBACK_LABEL} pays"
