from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from chatmate.chat_state import ChatStateStore
from chatmate.i18n import locale_label, normalize_locale, t
from chatmate.models import Locale

LOCALE_CHOICES = ("ITA", "ENG")


class LocaleState(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    AWAITING_SELECTION = "awaiting_selection"
    DONE = "done"


@dataclass(frozen=True)
class LocaleStep:
    """What the transport should send for one transition."""

    text: str
    show_choices: bool
    state: LocaleState
    locale: Locale | None = None


class LocaleConversation:
    """Locale picker dialogue, one per chat.

    Waiting chats live only in memory: a restart simply drops the dialogue.
    Invalid answers re-prompt forever until a valid choice or cancel().
    """

    def __init__(self, chat_state: ChatStateStore) -> None:
        self._chat_state = chat_state
        self._states: dict[int, LocaleState] = {}
        self._logger = logging.getLogger("locale_conversation")

    def state(self, chat_id: int) -> LocaleState:
        return self._states.get(chat_id, LocaleState.IDLE)

    def is_awaiting(self, chat_id: int) -> bool:
        return self.state(chat_id) is LocaleState.AWAITING_SELECTION

    def cancel(self, chat_id: int) -> None:
        self._states.pop(chat_id, None)

    async def begin(self, chat_id: int, preferred_locale: Locale) -> LocaleStep:
        self._states[chat_id] = LocaleState.PROMPTING
        try:
            await self._chat_state.ensure_once(chat_id, preferred_locale)
            current = await self._chat_state.get_locale(chat_id)
        except Exception:
            self._states.pop(chat_id, None)
            raise
        self._states[chat_id] = LocaleState.AWAITING_SELECTION
        self._logger.info("locale dialogue started chat_id=%s current=%s", chat_id, current.value)
        return LocaleStep(
            text=t(current, "language_prompt"),
            show_choices=True,
            state=LocaleState.AWAITING_SELECTION,
        )

    async def feed(self, chat_id: int, text: str) -> LocaleStep | None:
        if not self.is_awaiting(chat_id):
            return None
        selected = normalize_locale(text)
        if selected is None:
            current = await self._chat_state.get_locale(chat_id)
            self._logger.info("locale dialogue invalid choice chat_id=%s text=%r", chat_id, text)
            return LocaleStep(
                text=t(current, "language_invalid"),
                show_choices=True,
                state=LocaleState.AWAITING_SELECTION,
            )
        await self._chat_state.set_locale(chat_id, selected)
        self._states.pop(chat_id, None)
        return LocaleStep(
            text=t(selected, "language_set", language=locale_label(selected)),
            show_choices=False,
            state=LocaleState.DONE,
            locale=selected,
        )
