"""CSV export of the tables embedded in a Markdown report."""

from __future__ import annotations

import csv
import io

CSV_FILENAME = "defi-positions.csv"


def _is_separator(line: str) -> bool:
    return "---" in line


def markdown_tables_to_csv(markdown: str) -> str:
    """Extract every pipe-table line from a report and render it as CSV.

    Lines starting with `|` are table lines; separator rows are dropped. Returns an empty string when
    the report has no table (fewer than two table lines).
    """

    lines = [line for line in (markdown or "").splitlines() if line.startswith("|")]
    if len(lines) < 2:
        return ""

    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    for line in lines:
        if _is_separator(line):
            continue
        writer.writerow(cell.strip() for cell in line.strip().strip("|").split("|"))
    return out.getvalue()
