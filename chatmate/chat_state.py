from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Protocol

from chatmate.errors import PersistenceError
from chatmate.models import DEFAULT_LOCALE, Locale


class ChatBackend(Protocol):
    def ensure_chat(self, chat_id: int, default_locale: Locale) -> None: ...

    def get_chat_locale(self, chat_id: int) -> Locale: ...

    def set_chat_locale(self, chat_id: int, locale: Locale) -> None: ...


@dataclass
class ChatStateCache:
    """Process-wide chat bookkeeping.

    Filled lazily and never evicted. After a restart it is rebuilt from the
    backing store as chats show up again.
    """

    ensured: set[int] = field(default_factory=set)
    locales: dict[int, Locale] = field(default_factory=dict)
    in_flight: dict[int, asyncio.Task[None]] = field(default_factory=dict)
    locks: dict[int, asyncio.Lock] = field(default_factory=dict)

    def lock_for(self, chat_id: int) -> asyncio.Lock:
        lock = self.locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self.locks[chat_id] = lock
        return lock


class ChatStateStore:
    def __init__(self, backend: ChatBackend, cache: ChatStateCache | None = None) -> None:
        self._backend = backend
        self._cache = cache if cache is not None else ChatStateCache()
        self._logger = logging.getLogger("chat_state")

    @property
    def cache(self) -> ChatStateCache:
        return self._cache

    def is_ensured(self, chat_id: int) -> bool:
        return chat_id in self._cache.ensured

    async def ensure_once(self, chat_id: int, preferred_locale: Locale) -> None:
        if chat_id in self._cache.ensured:
            return
        await self._join_or_start(chat_id, preferred_locale)

    async def ensure(self, chat_id: int, preferred_locale: Locale) -> None:
        """Explicit setup path: always writes, but never alongside another write for the same chat."""
        pending = self._cache.in_flight.get(chat_id)
        if pending is not None and not pending.done():
            try:
                await asyncio.shield(pending)
            except PersistenceError:
                self._logger.warning("previous ensure failed, retrying chat_id=%s", chat_id)
        await self._join_or_start(chat_id, preferred_locale)

    async def _join_or_start(self, chat_id: int, preferred_locale: Locale) -> None:
        task = self._cache.in_flight.get(chat_id)
        if task is None or task.done():
            task = asyncio.create_task(self._ensure_chat(chat_id, preferred_locale))
            self._cache.in_flight[chat_id] = task
            task.add_done_callback(partial(self._clear_in_flight, chat_id))
        else:
            self._logger.debug("ensure joined in-flight write chat_id=%s", chat_id)
        await asyncio.shield(task)

    def _clear_in_flight(self, chat_id: int, task: asyncio.Task[None]) -> None:
        if self._cache.in_flight.get(chat_id) is task:
            del self._cache.in_flight[chat_id]

    async def _ensure_chat(self, chat_id: int, preferred_locale: Locale) -> None:
        self._logger.info("ensuring chat chat_id=%s preferred_locale=%s", chat_id, preferred_locale.value)
        await asyncio.to_thread(self._backend.ensure_chat, chat_id, preferred_locale)
        self._cache.ensured.add(chat_id)
        # the write may have created the row, so a cached value can be stale
        await self._load_locale(chat_id, refresh=True)

    async def _load_locale(self, chat_id: int, refresh: bool = False) -> Locale:
        async with self._cache.lock_for(chat_id):
            cached = self._cache.locales.get(chat_id)
            if cached is not None and not refresh:
                return cached
            stored = await asyncio.to_thread(self._backend.get_chat_locale, chat_id)
            self._cache.locales[chat_id] = stored
            return stored

    async def get_locale(self, chat_id: int) -> Locale:
        """Cached locale for the chat, or the default while the chat has no record yet."""
        cached = self._cache.locales.get(chat_id)
        if cached is not None:
            return cached
        if chat_id not in self._cache.ensured:
            return DEFAULT_LOCALE
        return await self._load_locale(chat_id)

    async def set_locale(self, chat_id: int, locale: Locale) -> None:
        async with self._cache.lock_for(chat_id):
            await asyncio.to_thread(self._backend.set_chat_locale, chat_id, locale)
            self._cache.locales[chat_id] = locale
        self._logger.info("locale set chat_id=%s locale=%s", chat_id, locale.value)
