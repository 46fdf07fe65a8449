"""Row models for query results returned by the Allium explorer.

Rows are immutable facts; the report layer aggregates them in memory and never mutates them.
Keeping the payload-to-model conversion in one place prevents drift between the client and the
test fixtures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class PositionRow(BaseModel):
    """One wallet / token / date / protocol observation from the fact table."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    date: str
    address: str
    project: str = ""
    protocol: str = ""
    symbol: str
    balance: float = 0.0
    usd_balance: float = 0.0
    usd_exchange_rate: float = 0.0
    lending_id: str | None = None
    mint: str | None = None
    token_name: str | None = None

    @field_validator("balance", "usd_balance", "usd_exchange_rate", mode="before")
    @classmethod
    def null_to_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("project", "protocol", mode="before")
    @classmethod
    def null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("date", mode="before")
    @classmethod
    def stringify_date(cls, value: Any) -> Any:
        # Some envelopes deliver dates as ISO strings, others as date/datetime-like objects.
        return value if isinstance(value, str) else str(value)


class ColumnMeta(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    data_type: str | None = None


class QueryResult(BaseModel):
    """Row set plus column metadata for one executed query."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    rows: tuple[PositionRow, ...] = ()
    columns: tuple[ColumnMeta, ...] = ()
    row_count: int | None = None
    sql: str | None = None


def rows_from_payload(payload: Any) -> QueryResult:
    """Validate a decoded `{data, meta: {columns, row_count}, sql}` result object.

    Raises:
        ValueError: If the payload does not have the expected shape.
    """

    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise ValueError("expected an object with a 'data' list")

    meta = payload.get("meta") or {}
    if not isinstance(meta, dict):
        raise ValueError("expected 'meta' to be an object")
    return QueryResult(
        rows=tuple(PositionRow.model_validate(item) for item in payload["data"]),
        columns=tuple(ColumnMeta.model_validate(c) for c in meta.get("columns") or ()),
        row_count=meta.get("row_count"),
        sql=payload.get("sql"),
    )


def position_rows(rows: Sequence[dict[str, Any]]) -> list[PositionRow]:
    """Convert plain dict rows (fixtures, exports) into `PositionRow` models."""

    return [PositionRow.model_validate(row) for row in rows]
