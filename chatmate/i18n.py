from __future__ import annotations

from typing import Any

from chatmate.models import DEFAULT_LOCALE, Locale, MemberInput


MESSAGES: dict[Locale, dict[str, str]] = {
    Locale.EN: {
        "welcome": "Hi everyone! Mention me with @{bot_username} and I'll chime in. Use /language to switch language.",
        "language_prompt": "Which language should I use in this chat?",
        "language_invalid": "I didn't get that. Please choose ITA or ENG.",
        "language_set": "Language set to {language}.",
        "birthday_help": "Usage: /birthday YYYY-MM-DD or /birthday DD/MM/YYYY",
        "birthday_invalid": "That doesn't look like a valid date. Try YYYY-MM-DD or DD/MM/YYYY.",
        "birthday_saved": "Birthday saved: {date}.",
        "nominate_no_candidates": "I don't know anyone here yet. Say something first!",
        "nominate_result": "And the nominee is... {name}!",
        "ai_error": "Sorry, my brain is offline right now. Try again later.",
        "generic_error": "Something went wrong. Please try again.",
    },
    Locale.IT: {
        "welcome": "Ciao a tutti! Menzionatemi con @{bot_username} e dirò la mia. Usate /language per cambiare lingua.",
        "language_prompt": "Che lingua devo usare in questa chat?",
        "language_invalid": "Non ho capito. Scegli ITA oppure ENG.",
        "language_set": "Lingua impostata: {language}.",
        "birthday_help": "Uso: /birthday AAAA-MM-GG oppure /birthday GG/MM/AAAA",
        "birthday_invalid": "Non sembra una data valida. Prova AAAA-MM-GG oppure GG/MM/AAAA.",
        "birthday_saved": "Compleanno salvato: {date}.",
        "nominate_no_candidates": "Non conosco ancora nessuno qui. Scrivete qualcosa prima!",
        "nominate_result": "E il nominato è... {name}!",
        "ai_error": "Scusate, il mio cervello è offline. Riprovate più tardi.",
        "generic_error": "Qualcosa è andato storto. Riprova.",
    },
}

LANGUAGE_LABELS = {
    Locale.EN: "English",
    Locale.IT: "Italiano",
}

LANGUAGE_ALIASES = {
    "it": Locale.IT,
    "ita": Locale.IT,
    "en": Locale.EN,
    "eng": Locale.EN,
}


def t(locale: Locale, key: str, **kwargs: Any) -> str:
    catalog = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE][key]
    return template.format(**kwargs) if kwargs else template


def normalize_locale(value: str | None) -> Locale | None:
    if not value:
        return None
    return LANGUAGE_ALIASES.get(value.strip().lower())


def coerce_locale(value: str | None) -> Locale:
    """Map a stored locale code back to the enum, defaulting on unknown values."""
    try:
        return Locale(value)
    except ValueError:
        return DEFAULT_LOCALE


def locale_label(locale: Locale) -> str:
    return LANGUAGE_LABELS[locale]


def initial_locale_from_user(user: MemberInput | None) -> Locale:
    code = (user.language_code or "").lower() if user else ""
    if code.startswith("it"):
        return Locale.IT
    return DEFAULT_LOCALE
