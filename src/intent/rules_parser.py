"""Rules-based intent parser (deterministic fallback).

This parser is the safety net when the LLM is unavailable or returns garbage. It is strict about
order and never raises:
    1. help triggers win over everything else,
    2. a wallet address is required,
    3. comparison beats range, range beats snapshot,
    4. dates are used in the order they appear in the text, not chronological order.
"""

from __future__ import annotations

import re

from src.intent.dates import extract_iso_dates
from src.intent.schema import IntentKind, RawIntent

# Base58 alphabet: digits 1-9 and ASCII letters except 0, O, I and l.
_ADDRESS_RE = re.compile(r"[1-9A-HJ-NP-Za-km-z]{32,44}")

HELP_TERMS: tuple[str, ...] = ("help", "what can you")
GREETINGS: frozenset[str] = frozenset({"hi", "hello"})
COMPARISON_TERMS: tuple[str, ...] = ("compare", "vs", "versus")
RANGE_TERMS: tuple[str, ...] = ("from", "history", "range", "between")

MISSING_ADDRESS_MESSAGE = (
    "I need a Solana wallet address. "
    "Try: 'Show me positions for `<wallet_address>` on 2025-12-31'"
)
MISSING_DATE_MESSAGE = (
    "I found a wallet address but need a date. "
    "Try: 'Show me positions for `<wallet>` on 2025-12-31'"
)


def _contains_any(text: str, terms: tuple[str, ...]) -> bool:
    return any(term in text for term in terms)


def is_help_request(text: str) -> bool:
    """Whether the text asks for help or is a bare greeting."""

    lowered = (text or "").lower()
    return _contains_any(lowered, HELP_TERMS) or lowered.strip() in GREETINGS


def extract_address(text: str) -> str | None:
    """Return the first base58-looking token of 32-44 characters, if any."""

    match = _ADDRESS_RE.search(text or "")
    if not match:
        return None
    return match.group(0)


def parse_intent(text: str) -> RawIntent:
    """Parse an utterance into a raw intent without any network access."""

    if is_help_request(text):
        return RawIntent(type=IntentKind.help)

    address = extract_address(text)
    if address is None:
        return RawIntent(type=IntentKind.error, message=MISSING_ADDRESS_MESSAGE)

    lowered = text.lower()
    dates = extract_iso_dates(text)

    if _contains_any(lowered, COMPARISON_TERMS) and len(dates) >= 2:
        return RawIntent(type=IntentKind.comparison, address=address, date1=dates[0], date2=dates[1])

    if _contains_any(lowered, RANGE_TERMS) and len(dates) >= 2:
        return RawIntent(
            type=IntentKind.range,
            address=address,
            start_date=dates[0],
            end_date=dates[1],
        )

    if dates:
        return RawIntent(type=IntentKind.snapshot, address=address, date=dates[0])

    return RawIntent(type=IntentKind.error, message=MISSING_DATE_MESSAGE)
