"""Tests for the intent schema and the raw -> typed validation boundary."""

from __future__ import annotations

from datetime import date

import pytest

from src.intent.schema import (
    INVALID_DATE_MESSAGE,
    MISSING_FIELDS_MESSAGES,
    UNSUPPORTED_KIND_MESSAGE,
    ComparisonIntent,
    ErrorIntent,
    HelpIntent,
    IntentKind,
    RangeIntent,
    RawIntent,
    SnapshotIntent,
    intent_from_obj,
    to_query_intent,
)


def test_snapshot_boundary_produces_typed_intent(wallet: str) -> None:
    intent = to_query_intent(RawIntent(type="snapshot", address=wallet, date="2025-12-31"))
    assert isinstance(intent, SnapshotIntent)
    assert intent.kind == IntentKind.snapshot
    assert intent.date == date(2025, 12, 31)
    assert intent.protocol is None


def test_protocol_is_lower_cased(wallet: str) -> None:
    raw = intent_from_obj(
        {"type": "range", "address": wallet, "start_date": "2025-10-01",
         "end_date": "2025-12-31", "protocol": "Kamino"}
    )
    intent = to_query_intent(raw)
    assert isinstance(intent, RangeIntent)
    assert intent.protocol == "kamino"


def test_comparison_boundary(wallet: str) -> None:
    raw = RawIntent(type="comparison", address=wallet, date1="2025-12-31", date2="2025-09-30")
    intent = to_query_intent(raw)
    assert isinstance(intent, ComparisonIntent)
    assert intent.date1 == date(2025, 12, 31)
    assert intent.date2 == date(2025, 9, 30)


@pytest.mark.parametrize(
    ("obj", "kind"),
    [
        ({"type": "snapshot", "address": "x" * 40}, IntentKind.snapshot),
        ({"type": "snapshot", "date": "2025-12-31"}, IntentKind.snapshot),
        ({"type": "range", "address": "x" * 40, "start_date": "2025-10-01"}, IntentKind.range),
        ({"type": "comparison", "address": "x" * 40, "date1": "2025-10-01"}, IntentKind.comparison),
    ],
)
def test_incomplete_intent_becomes_error(obj: dict, kind: IntentKind) -> None:
    intent = to_query_intent(intent_from_obj(obj))
    assert isinstance(intent, ErrorIntent)
    assert intent.message == MISSING_FIELDS_MESSAGES[kind]
    assert "Try:" in intent.message


def test_blank_fields_count_as_missing(wallet: str) -> None:
    intent = to_query_intent(intent_from_obj({"type": "snapshot", "address": wallet, "date": " "}))
    assert isinstance(intent, ErrorIntent)


def test_impossible_calendar_date_becomes_error(wallet: str) -> None:
    intent = to_query_intent(RawIntent(type="snapshot", address=wallet, date="2025-02-30"))
    assert isinstance(intent, ErrorIntent)
    assert intent.message == INVALID_DATE_MESSAGE


def test_raw_intent_rejects_non_iso_dates(wallet: str) -> None:
    with pytest.raises(ValueError):
        intent_from_obj({"type": "snapshot", "address": wallet, "date": "Dec 31, 2025"})


def test_raw_intent_ignores_unknown_keys(wallet: str) -> None:
    raw = intent_from_obj({"type": "Snapshot", "address": wallet, "date": "2025-12-31", "x": 1})
    assert raw.type == "snapshot"


def test_unknown_kind_is_unsupported() -> None:
    intent = to_query_intent(RawIntent(type="portfolio"))
    assert isinstance(intent, ErrorIntent)
    assert intent.message == UNSUPPORTED_KIND_MESSAGE


def test_help_and_error_keep_message() -> None:
    help_intent = to_query_intent(RawIntent(type="help", message="Ask me about wallets"))
    assert isinstance(help_intent, HelpIntent)
    assert help_intent.message == "Ask me about wallets"

    error_intent = to_query_intent(RawIntent(type="error"))
    assert isinstance(error_intent, ErrorIntent)
    assert error_intent.message is None


def test_typed_intent_requires_non_empty_address() -> None:
    with pytest.raises(ValueError):
        SnapshotIntent(address="  ", date=date(2025, 12, 31))


def test_typed_intents_are_immutable(wallet: str) -> None:
    intent = SnapshotIntent(address=wallet, date=date(2025, 12, 31))
    with pytest.raises(ValueError):
        intent.address = "other"  # type: ignore[misc]
