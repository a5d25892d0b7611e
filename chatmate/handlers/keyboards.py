from __future__ import annotations

from telegram import ReplyKeyboardMarkup

from chatmate.locale_conversation import LOCALE_CHOICES


def locale_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        [[choice] for choice in LOCALE_CHOICES],
        resize_keyboard=True,
        one_time_keyboard=True,
    )
