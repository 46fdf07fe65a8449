"""Markdown report formatters.

Each formatter is a pure function of the rows returned by the query service (already filtered and
ordered by the SQL builder). The Markdown is the contract with the presentation layer: every table
starts its lines with `|` and has exactly one `|---|` separator row, so CSV export can extract the
tables without knowing the report kind.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from src.allium.rows import PositionRow
from src.intent.catalog import FACT_TABLE, data_range_label
from src.intent.dates import display_date
from src.report.numbers import (
    format_balance,
    format_price,
    format_usd,
    pct_change,
    short_address,
)

DATA_SOURCE_FOOTER = f"_Data source: Allium `{FACT_TABLE}`_"

EMPTY_SNAPSHOT_MESSAGE = (
    "No positions found for this wallet on the specified date. The wallet may not have had any "
    "active Kamino lending positions, or the date may be outside the available data range "
    f"({data_range_label()})."
)
EMPTY_RANGE_MESSAGE = "No positions found for this wallet in the specified date range."
EMPTY_COMPARISON_MESSAGE = "No positions found for comparison on the specified dates."


def _table(header: Sequence[str], rows: Sequence[Sequence[str]]) -> list[str]:
    lines = [
        "| " + " | ".join(header) + " |",
        "|" + "|".join("-" * (len(h) + 2) for h in header) + "|",
    ]
    lines.extend("| " + " | ".join(cells) + " |" for cells in rows)
    return lines


def _find_symbol(rows: Sequence[PositionRow], symbol: str) -> PositionRow | None:
    return next((r for r in rows if r.symbol == symbol), None)


def format_snapshot(rows: Sequence[PositionRow]) -> str:
    """Holdings at one date: one line per token plus the total portfolio value."""

    if not rows:
        return EMPTY_SNAPSHOT_MESSAGE

    day = display_date(rows[0].date)
    # Every returned row contributes, even if a symbol appears twice.
    total_usd = sum(r.usd_balance for r in rows)

    lines = [f"### Lending Positions for `{short_address(rows[0].address)}` on {day}", ""]
    lines += _table(
        ("Token", "Protocol", "Balance", "USD Value", "Price"),
        [
            (
                r.symbol,
                f"{r.project} ({r.protocol})",
                format_balance(r.balance),
                format_usd(r.usd_balance),
                format_price(r.usd_exchange_rate),
            )
            for r in rows
        ],
    )
    lines += [
        "",
        f"**Total Portfolio Value: {format_usd(total_usd)}**",
        "",
        DATA_SOURCE_FOOTER,
    ]
    return "\n".join(lines)


def format_range(rows: Sequence[PositionRow]) -> str:
    """Per-token time series over the dates present, followed by a period summary.

    A token only has a line for a date if the query returned a row for that (date, token) pair;
    missing days are not filled or interpolated.
    """

    if not rows:
        return EMPTY_RANGE_MESSAGE

    by_date: dict[str, list[PositionRow]] = {}
    for row in rows:
        by_date.setdefault(display_date(row.date), []).append(row)

    symbols = list(dict.fromkeys(r.symbol for r in rows))
    dates = sorted(by_date)
    start_date, end_date = dates[0], dates[-1]

    lines = [
        f"### Position History for `{short_address(rows[0].address)}` "
        f"({start_date} to {end_date})",
        "",
    ]

    for symbol in symbols:
        series = []
        for day in dates:
            match = _find_symbol(by_date[day], symbol)
            if match is None:
                continue
            series.append(
                (
                    day,
                    format_balance(match.balance),
                    format_usd(match.usd_balance),
                    format_price(match.usd_exchange_rate),
                )
            )
        lines += [f"#### {symbol}", ""]
        lines += _table(("Date", "Balance", "USD Value", "Price"), series)
        lines.append("")

    start_total = sum(r.usd_balance for r in by_date[start_date])
    end_total = sum(r.usd_balance for r in by_date[end_date])

    lines += [
        "**Period Summary:**",
        f"- Start value ({start_date}): {format_usd(start_total)}",
        f"- End value ({end_date}): {format_usd(end_total)}",
        f"- Change: {format_usd(end_total - start_total)} ({pct_change(start_total, end_total)})",
        "",
        DATA_SOURCE_FOOTER,
    ]
    return "\n".join(lines)


def format_comparison(
        rows: Sequence[PositionRow],
        date1: date | str,
        date2: date | str,
) -> str:
    """Per-token and total deltas between two dates.

    Tokens present on only one side are shown with zero on the other side.
    """

    if not rows:
        return EMPTY_COMPARISON_MESSAGE

    d1, d2 = str(date1), str(date2)
    d1_rows = [r for r in rows if display_date(r.date) == d1]
    d2_rows = [r for r in rows if display_date(r.date) == d2]
    symbols = list(dict.fromkeys(r.symbol for r in [*d1_rows, *d2_rows]))

    total1 = 0.0
    total2 = 0.0
    table_rows = []
    for symbol in symbols:
        r1 = _find_symbol(d1_rows, symbol)
        r2 = _find_symbol(d2_rows, symbol)
        bal1, usd1 = (r1.balance, r1.usd_balance) if r1 else (0.0, 0.0)
        bal2, usd2 = (r2.balance, r2.usd_balance) if r2 else (0.0, 0.0)
        total1 += usd1
        total2 += usd2
        table_rows.append(
            (
                symbol,
                format_balance(bal1),
                format_usd(usd1),
                format_balance(bal2),
                format_usd(usd2),
                format_usd(usd2 - usd1),
                pct_change(usd1, usd2),
            )
        )

    lines = [f"### Position Comparison for `{short_address(rows[0].address)}`: {d1} vs {d2}", ""]
    lines += _table(
        (
            "Token",
            f"Balance ({d1})",
            f"USD ({d1})",
            f"Balance ({d2})",
            f"USD ({d2})",
            "Change",
            "% Change",
        ),
        table_rows,
    )
    lines += [
        "",
        "**Total Portfolio:**",
        f"- {d1}: {format_usd(total1)}",
        f"- {d2}: {format_usd(total2)}",
        f"- Change: {format_usd(total2 - total1)} ({pct_change(total1, total2)})",
        "",
        DATA_SOURCE_FOOTER,
    ]
    return "\n".join(lines)
