from __future__ import annotations

from dataclasses import dataclass

from chatmate.errors import ConfigError


@dataclass(frozen=True)
class ChatAllowList:
    chat_ids: frozenset[int]

    @classmethod
    def from_csv(cls, raw: str | None) -> "ChatAllowList":
        chat_ids: set[int] = set()
        for item in (raw or "").split(","):
            item = item.strip()
            if not item:
                continue
            try:
                chat_ids.add(int(item))
            except ValueError as exc:
                raise ConfigError(f"ALLOWED_CHAT_IDS contains a non-integer entry: {item!r}") from exc
        return cls(frozenset(chat_ids))

    def allows(self, chat_id: int | None) -> bool:
        # empty list accepts nothing
        return chat_id is not None and chat_id in self.chat_ids

    def __len__(self) -> int:
        return len(self.chat_ids)
