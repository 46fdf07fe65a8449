"""Date helpers shared by the rules parser and the report formatters.

User dates are only recognized in ISO `YYYY-MM-DD` form. Rows coming back from the fact table may
carry a time component (`2025-12-31T00:00:00` or `2025-12-31 00:00:00`); reports display the date
part only.
"""

from __future__ import annotations

import re

ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

_TIME_SEPARATOR_RE = re.compile(r"[T ]")


def extract_iso_dates(text: str) -> list[str]:
    """Return all `YYYY-MM-DD` substrings in order of appearance (not chronological order)."""

    return ISO_DATE_RE.findall(text or "")


def display_date(value: str) -> str:
    """Return the calendar-date portion of a row date (text before any time separator)."""

    return _TIME_SEPARATOR_RE.split((value or "").strip(), maxsplit=1)[0]
