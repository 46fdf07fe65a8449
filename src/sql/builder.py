"""Deterministic SQL builder.

The builder converts a validated `QueryIntent` into SQL against the lending-position fact table.
Identifiers (table, columns, ordering) are strictly allowlisted.

The query service only accepts SQL text, so values cannot be bound as parameters and are
interpolated as literals. This is a known injection surface; it is closed by constraining every
value before interpolation: addresses must be alphanumeric, protocols must match `[a-z0-9_-]+` and
dates are typed `date` objects. Anything else is rejected with `QueryCompilerError`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from src.intent.catalog import FACT_TABLE
from src.intent.schema import (
    ComparisonIntent,
    IntentKind,
    PositionIntent,
    QueryIntent,
    RangeIntent,
    SnapshotIntent,
)
from src.sql.columns import POSITION_COLUMNS, PROTOCOL_FILTER_COLUMN

SNAPSHOT_LIMIT = 50
RANGE_LIMIT = 500
COMPARISON_LIMIT = 100

_ADDRESS_LITERAL_RE = re.compile(r"^[0-9A-Za-z]+$")
_PROTOCOL_LITERAL_RE = re.compile(r"^[a-z0-9_\-]+$")


class QueryCompilerError(ValueError):
    """Raised when an intent cannot be converted into deterministic SQL."""


@dataclass(frozen=True)
class CompiledQuery:
    """SQL text plus the intent kind that produced it (carried through for display/export)."""

    sql: str
    kind: IntentKind


def _address_literal(address: str) -> str:
    if not _ADDRESS_LITERAL_RE.fullmatch(address):
        raise QueryCompilerError("Wallet addresses may only contain letters and digits.")
    return f"'{address}'"


def _protocol_literal(protocol: str) -> str:
    value = protocol.lower()
    if not _PROTOCOL_LITERAL_RE.fullmatch(value):
        raise QueryCompilerError(f"Unsupported protocol name: {protocol!r}")
    return f"'{value}'"


def _date_literal(value: date) -> str:
    return f"'{value.isoformat()}'"


def _base_clauses(intent: PositionIntent) -> list[str]:
    return [f"address = {_address_literal(intent.address)}"]


def _finish_clauses(clauses: list[str], intent: PositionIntent) -> list[str]:
    clauses.append("balance > 0")
    if intent.protocol:
        clauses.append(f"{PROTOCOL_FILTER_COLUMN} = {_protocol_literal(intent.protocol)}")
    return clauses


def _select_sql(clauses: list[str], *, order_by: str, limit: int) -> str:
    columns = ",\n  ".join(POSITION_COLUMNS)
    where = " AND ".join(clauses)
    return (
        f"SELECT\n  {columns}\n"
        f"FROM {FACT_TABLE}\n"
        f"WHERE {where}\n"
        f"ORDER BY {order_by}\n"
        f"LIMIT {limit}"
    )


def _build_snapshot(intent: SnapshotIntent) -> str:
    clauses = _base_clauses(intent)
    clauses.append(f"date = {_date_literal(intent.date)}")
    _finish_clauses(clauses, intent)
    return _select_sql(clauses, order_by="usd_balance DESC", limit=SNAPSHOT_LIMIT)


def _build_range(intent: RangeIntent) -> str:
    clauses = _base_clauses(intent)
    clauses.append(f"date >= {_date_literal(intent.start_date)}")
    clauses.append(f"date <= {_date_literal(intent.end_date)}")
    _finish_clauses(clauses, intent)
    return _select_sql(clauses, order_by="date ASC, usd_balance DESC", limit=RANGE_LIMIT)


def _build_comparison(intent: ComparisonIntent) -> str:
    clauses = _base_clauses(intent)
    clauses.append(f"date IN ({_date_literal(intent.date1)}, {_date_literal(intent.date2)})")
    _finish_clauses(clauses, intent)
    return _select_sql(clauses, order_by="date ASC, usd_balance DESC", limit=COMPARISON_LIMIT)


def compile_query(intent: QueryIntent) -> CompiledQuery:
    """Build SQL text from a data-bearing intent (snapshot, range or comparison)."""

    if isinstance(intent, SnapshotIntent):
        sql = _build_snapshot(intent)
    elif isinstance(intent, RangeIntent):
        sql = _build_range(intent)
    elif isinstance(intent, ComparisonIntent):
        sql = _build_comparison(intent)
    else:
        raise QueryCompilerError(f"Unsupported intent kind: {getattr(intent, 'type', intent)!r}")

    return CompiledQuery(sql=sql, kind=intent.kind)
