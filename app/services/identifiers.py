"""
Event key derivation and opaque id generation
"""

import re
import secrets
import time
from datetime import date, datetime
from typing import Optional, Union

from app.core.errors import InvalidInput

_NON_WORD = re.compile(r"[\W_]+", re.UNICODE)
_DATE_SEPARATORS = re.compile(r"[-./\s:]")
_OCCURRENCE_FORMATS = ("%d%m%Y", "%d.%m.%Y", "%d-%m-%Y", "%d/%m/%Y")


def derive_event_key(event_date: Union[date, str], name: str) -> str:
    """Build the folder-style key `YYYYMMDD_some_event_name`.

    The date part is the ISO date with separators stripped; the name part is
    lower-cased with every run of non-word characters collapsed to a single
    underscore. Letters outside ASCII are kept.
    """
    if isinstance(event_date, (date, datetime)):
        date_part = event_date.strftime("%Y%m%d")
    else:
        date_part = _DATE_SEPARATORS.sub("", str(event_date).strip())

    name_part = _NON_WORD.sub("_", (name or "").strip().lower()).strip("_")
    return f"{date_part}_{name_part or 'event'}"


def new_event_id() -> str:
    return secrets.token_hex(8)


def new_participant_id() -> str:
    """Millisecond timestamp plus random suffix: sortable and collision resistant"""
    return f"{int(time.time() * 1000):013d}{secrets.token_hex(3)}"


def today_occurrence_date(today: Optional[date] = None) -> str:
    return (today or date.today()).strftime("%d%m%Y")


def normalize_occurrence_date(value: str) -> str:
    """Return the 8-digit DDMMYYYY form of a results date"""
    text = (value or "").strip()
    if text.isdigit() and len(text) != 8:
        text = ""
    for fmt in _OCCURRENCE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.strftime("%d%m%Y")
    raise InvalidInput(
        f"Invalid results date '{value}'",
        details=["Expected DDMMYYYY, e.g. 01012025"],
    )

