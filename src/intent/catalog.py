"""Fixed data catalog exposed by the lending-position fact table.

The parser prompt, the help text, the SQL builder and the report footers all read from here so the
supported tokens and date range are stated in exactly one place.
"""

from __future__ import annotations

from datetime import date

FACT_TABLE = "solana.lending.position_holdings_daily"

SUPPORTED_CHAIN = "solana"
SUPPORTED_PROJECT = "kamino"
SUPPORTED_PROTOCOL = "kvault"

SUPPORTED_TOKENS: tuple[str, ...] = (
    "USDC",
    "SOL",
    "USDG",
    "PYUSD",
    "cash",
    "USDT",
    "USDS",
    "usd1",
    "AUSD",
)

DATA_START = date(2025, 3, 1)


def data_range_label() -> str:
    """Human-readable supported date range, e.g. "March 2025 to present"."""

    return f"{DATA_START:%B %Y} to present"
