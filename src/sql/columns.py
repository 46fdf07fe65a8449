"""Allowlisted SQL identifiers.

All column names referenced in generated SQL must come from here; no user-provided identifier is
ever interpolated into SQL.
"""

from __future__ import annotations

POSITION_COLUMNS: tuple[str, ...] = (
    "date",
    "address",
    "project",
    "protocol",
    "symbol",
    "balance",
    "usd_balance",
    "usd_exchange_rate",
    "lending_id",
    "mint",
    "token_name",
)

# The user-facing "protocol" (e.g. "kamino") is stored in the `project` column; `protocol` holds the
# vault program name (e.g. "kvault").
PROTOCOL_FILTER_COLUMN = "project"
