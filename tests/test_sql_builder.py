"""Tests for the deterministic SQL builder (allowlists, per-kind shape, literal guards)."""

from __future__ import annotations

from datetime import date

import pytest

from src.intent.schema import (
    ComparisonIntent,
    ErrorIntent,
    HelpIntent,
    IntentKind,
    RangeIntent,
    SnapshotIntent,
)
from src.sql.builder import QueryCompilerError, compile_query
from src.sql.columns import POSITION_COLUMNS


def _where_clauses(sql: str) -> list[str]:
    where_line = next(line for line in sql.splitlines() if line.startswith("WHERE "))
    return where_line.removeprefix("WHERE ").split(" AND ")


def _selected_columns(sql: str) -> list[str]:
    select_block = sql.split("FROM", 1)[0].removeprefix("SELECT")
    return [c.strip() for c in select_block.split(",")]


def _line_starting(sql: str, prefix: str) -> str:
    return next(line for line in sql.splitlines() if line.startswith(prefix))


def test_snapshot_query_shape(wallet: str) -> None:
    compiled = compile_query(SnapshotIntent(address=wallet, date=date(2025, 12, 31)))

    assert compiled.kind == IntentKind.snapshot
    assert _where_clauses(compiled.sql) == [
        f"address = '{wallet}'",
        "date = '2025-12-31'",
        "balance > 0",
    ]
    assert _line_starting(compiled.sql, "FROM") == "FROM solana.lending.position_holdings_daily"
    assert _line_starting(compiled.sql, "ORDER BY") == "ORDER BY usd_balance DESC"
    assert _line_starting(compiled.sql, "LIMIT") == "LIMIT 50"


def test_protocol_filter_is_omitted_when_unspecified(wallet: str) -> None:
    compiled = compile_query(SnapshotIntent(address=wallet, date=date(2025, 12, 31)))
    assert "project =" not in compiled.sql


def test_protocol_filter_is_lower_cased(wallet: str) -> None:
    compiled = compile_query(
        SnapshotIntent(address=wallet, date=date(2025, 12, 31), protocol="KAMINO")
    )
    assert "project = 'kamino'" in _where_clauses(compiled.sql)


def test_range_query_shape(wallet: str) -> None:
    compiled = compile_query(
        RangeIntent(address=wallet, start_date=date(2025, 10, 1), end_date=date(2025, 12, 31))
    )

    assert compiled.kind == IntentKind.range
    clauses = _where_clauses(compiled.sql)
    assert "date >= '2025-10-01'" in clauses
    assert "date <= '2025-12-31'" in clauses
    assert "balance > 0" in clauses
    assert _line_starting(compiled.sql, "ORDER BY") == "ORDER BY date ASC, usd_balance DESC"
    assert _line_starting(compiled.sql, "LIMIT") == "LIMIT 500"


def test_comparison_query_shape(wallet: str) -> None:
    compiled = compile_query(
        ComparisonIntent(address=wallet, date1=date(2025, 9, 30), date2=date(2025, 12, 31))
    )

    assert compiled.kind == IntentKind.comparison
    clauses = _where_clauses(compiled.sql)
    assert "date IN ('2025-09-30', '2025-12-31')" in clauses
    assert "balance > 0" in clauses
    assert _line_starting(compiled.sql, "ORDER BY") == "ORDER BY date ASC, usd_balance DESC"
    assert _line_starting(compiled.sql, "LIMIT") == "LIMIT 100"


def test_selected_columns_are_identical_across_kinds(wallet: str) -> None:
    queries = [
        compile_query(SnapshotIntent(address=wallet, date=date(2025, 12, 31))),
        compile_query(
            RangeIntent(address=wallet, start_date=date(2025, 10, 1), end_date=date(2025, 12, 31))
        ),
        compile_query(
            ComparisonIntent(address=wallet, date1=date(2025, 9, 30), date2=date(2025, 12, 31))
        ),
    ]
    for compiled in queries:
        assert _selected_columns(compiled.sql) == list(POSITION_COLUMNS)


def test_address_with_quote_is_rejected() -> None:
    intent = SnapshotIntent(address="abc' OR '1'='1", date=date(2025, 12, 31))
    with pytest.raises(QueryCompilerError):
        compile_query(intent)


def test_protocol_with_sql_is_rejected(wallet: str) -> None:
    intent = SnapshotIntent(address=wallet, date=date(2025, 12, 31), protocol="kamino'; --")
    with pytest.raises(QueryCompilerError):
        compile_query(intent)


@pytest.mark.parametrize("intent", [HelpIntent(), ErrorIntent(message="nope")])
def test_non_data_intents_are_not_compiled(intent: object) -> None:
    with pytest.raises(QueryCompilerError):
        compile_query(intent)  # type: ignore[arg-type]
