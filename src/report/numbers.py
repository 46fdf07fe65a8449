"""Number and label formatting for position reports.

USD amounts are a currency display (2 decimals); balances are raw token quantities (4 decimals when
abbreviated, 6 otherwise). Both abbreviate with `K`/`M` suffixes at 1e3/1e6.
"""

from __future__ import annotations

NOT_AVAILABLE = "N/A"


def format_usd(value: float) -> str:
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.2f}K"
    return f"${value:.2f}"


def format_balance(value: float) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.4f}M"
    if value >= 1_000:
        return f"{value / 1_000:.4f}K"
    return f"{value:.6f}"


def format_price(value: float) -> str:
    return f"${value:.4f}"


def pct_change(start: float, end: float) -> str:
    """Percentage change from `start` to `end`, or `N/A` when `start` is zero."""

    if start == 0:
        return NOT_AVAILABLE
    return f"{(end - start) / start * 100:.2f}%"


def short_address(address: str) -> str:
    """Display form of a wallet address: first 4 and last 4 characters."""

    return f"{address[:4]}...{address[-4:]}"
