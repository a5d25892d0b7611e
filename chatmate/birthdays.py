from __future__ import annotations

import re
from datetime import date

from chatmate.errors import ValidationError

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_EU_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


def parse_birthday(value: str) -> str:
    """Parse ``YYYY-MM-DD`` or ``DD/MM/YYYY`` into an ISO date string.

    Raises ValidationError for other formats and for impossible dates such as
    February 30th.
    """
    text = value.strip()
    iso = _ISO_DATE.match(text)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
    else:
        eu = _EU_DATE.match(text)
        if not eu:
            raise ValidationError(f"Unrecognized date format: {value!r}")
        day, month, year = (int(part) for part in eu.groups())
    try:
        parsed = date(year, month, day)
    except ValueError as exc:
        raise ValidationError(f"Invalid calendar date: {value!r}") from exc
    return parsed.isoformat()
