"""Query intent schema (Pydantic models).

Two shapes live here:

- `RawIntent` is the loose JSON shape produced by the parsers (LLM or rules). Every field except
  `type` is optional, because an LLM may well omit what it could not find.
- `QueryIntent` is the tagged union consumed by the SQL builder and the report formatters. Each
  variant carries only the fields valid for its kind, all of them required.

`to_query_intent` is the validation boundary between the two: an incomplete raw intent is turned
into an `ErrorIntent` with a concrete example, so the builder never sees a partially-populated intent.
"""

from __future__ import annotations

import datetime as dt
import re
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class IntentKind(StrEnum):
    """Supported intent kinds."""

    snapshot = "snapshot"
    range = "range"
    comparison = "comparison"
    help = "help"
    error = "error"


DATA_KINDS: frozenset[IntentKind] = frozenset(
    {IntentKind.snapshot, IntentKind.range, IntentKind.comparison}
)

UNSUPPORTED_KIND_MESSAGE = "Unsupported query type."

_ISO_DATE_FULL_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_STRICT = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)


class _PositionIntent(BaseModel):
    """Fields shared by the data-bearing intents."""

    model_config = _STRICT

    address: str = Field(min_length=1)
    protocol: str | None = None

    @field_validator("protocol")
    @classmethod
    def lower_protocol(cls, value: str | None) -> str | None:
        """Protocol filters are matched case-insensitively; an empty value means "any protocol"."""

        if value is None:
            return None
        return value.lower() or None

    @property
    def kind(self) -> IntentKind:
        return IntentKind(getattr(self, "type"))


class SnapshotIntent(_PositionIntent):
    """Holdings at one date."""

    type: Literal["snapshot"] = "snapshot"
    date: dt.date


class RangeIntent(_PositionIntent):
    """Holdings over an inclusive date interval."""

    type: Literal["range"] = "range"
    start_date: dt.date
    end_date: dt.date


class ComparisonIntent(_PositionIntent):
    """Holdings at exactly two dates."""

    type: Literal["comparison"] = "comparison"
    date1: dt.date
    date2: dt.date


class HelpIntent(BaseModel):
    model_config = _STRICT

    type: Literal["help"] = "help"
    message: str | None = None

    @property
    def kind(self) -> IntentKind:
        return IntentKind.help


class ErrorIntent(BaseModel):
    model_config = _STRICT

    type: Literal["error"] = "error"
    message: str | None = None

    @property
    def kind(self) -> IntentKind:
        return IntentKind.error


QueryIntent = Annotated[
    SnapshotIntent | RangeIntent | ComparisonIntent | HelpIntent | ErrorIntent,
    Field(discriminator="type"),
]

PositionIntent = SnapshotIntent | RangeIntent | ComparisonIntent


class RawIntent(BaseModel):
    """Loosely-typed intent as emitted by a parser, before the validation boundary."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)

    type: str
    address: str | None = None
    date: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    date1: str | None = None
    date2: str | None = None
    protocol: str | None = None
    message: str | None = None

    @field_validator("type")
    @classmethod
    def normalize_type(cls, value: str) -> str:
        return value.lower()

    @field_validator(
        "address",
        "date",
        "start_date",
        "end_date",
        "date1",
        "date2",
        "protocol",
        "message",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date", "start_date", "end_date", "date1", "date2")
    @classmethod
    def validate_iso_shape(cls, value: str | None) -> str | None:
        """Dates must be literal `YYYY-MM-DD` strings."""

        if value is not None and not _ISO_DATE_FULL_RE.fullmatch(value):
            raise ValueError("dates must use the YYYY-MM-DD format")
        return value


_REQUIRED_FIELDS: dict[IntentKind, tuple[str, ...]] = {
    IntentKind.snapshot: ("address", "date"),
    IntentKind.range: ("address", "start_date", "end_date"),
    IntentKind.comparison: ("address", "date1", "date2"),
}

_VARIANTS: dict[IntentKind, type[_PositionIntent]] = {
    IntentKind.snapshot: SnapshotIntent,
    IntentKind.range: RangeIntent,
    IntentKind.comparison: ComparisonIntent,
}

MISSING_FIELDS_MESSAGES: dict[IntentKind, str] = {
    IntentKind.snapshot: (
        "I need both a wallet address and a date. "
        "Try: 'Show me positions for `<wallet>` on 2025-12-31'"
    ),
    IntentKind.range: (
        "I need a wallet address, start date, and end date. "
        "Try: 'Show positions for `<wallet>` from 2025-10-01 to 2025-12-31'"
    ),
    IntentKind.comparison: (
        "I need a wallet address and two dates to compare. "
        "Try: 'Compare `<wallet>` on 2025-09-30 vs 2025-12-31'"
    ),
}

INVALID_DATE_MESSAGE = (
    "One of the dates is not a valid calendar date. Use the YYYY-MM-DD format, e.g. 2025-12-31."
)


def intent_from_obj(obj: Any) -> RawIntent:
    """Validate a decoded JSON object as a `RawIntent`."""

    return RawIntent.model_validate(obj)


def to_query_intent(raw: RawIntent) -> QueryIntent:
    """Convert a raw intent into a fully-populated `QueryIntent`.

    Never raises: unknown kinds, missing required fields and impossible dates all become an
    `ErrorIntent` carrying a user-facing message.
    """

    try:
        kind = IntentKind(raw.type)
    except ValueError:
        return ErrorIntent(message=UNSUPPORTED_KIND_MESSAGE)

    if kind == IntentKind.help:
        return HelpIntent(message=raw.message)
    if kind == IntentKind.error:
        return ErrorIntent(message=raw.message)

    required = _REQUIRED_FIELDS[kind]
    if any(getattr(raw, name) is None for name in required):
        return ErrorIntent(message=MISSING_FIELDS_MESSAGES[kind])

    fields = {name: getattr(raw, name) for name in required}
    try:
        return _VARIANTS[kind](protocol=raw.protocol, **fields)
    except ValidationError:
        return ErrorIntent(message=INVALID_DATE_MESSAGE)
