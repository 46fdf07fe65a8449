"""Tests for the aiogram message handler reply contract."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from src.allium.rows import QueryResult, position_rows
from src.bot.handlers import INTERNAL_ERROR_REPLY, handle_message, split_message
from src.pipeline import HELP_MESSAGE

WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


class _FakeMessage:
    def __init__(self, text: str | None) -> None:
        self.text = text
        self.caption = None
        self.answers: list[str] = []
        self.documents: list[Any] = []

    async def answer(self, text: str) -> None:
        """Record the outgoing bot reply (aiogram's `Message.answer` substitute)."""
        self.answers.append(text)

    async def answer_document(self, document: Any) -> None:
        self.documents.append(document)


class _FakeExecutor:
    async def run_sql(self, sql: str) -> QueryResult:
        rows = position_rows(
            [
                {
                    "date": "2025-12-31",
                    "address": WALLET,
                    "project": "kamino",
                    "protocol": "kvault",
                    "symbol": "USDC",
                    "balance": 10,
                    "usd_balance": 10,
                    "usd_exchange_rate": 1.0,
                }
            ]
        )
        return QueryResult(rows=tuple(rows))


def _make_app() -> Any:
    return SimpleNamespace(
        settings=SimpleNamespace(llm_enabled=False, llm_api_key=None),
        executor=_FakeExecutor(),
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "   ", "/start", "/help@positions_bot", "/unknown"])
async def test_handler_replies_help_for_empty_text_and_commands(text: str | None) -> None:
    message = _FakeMessage(text=text)

    await handle_message(message, _make_app())  # type: ignore[arg-type]

    assert message.answers == [HELP_MESSAGE]
    assert message.documents == []


@pytest.mark.asyncio
async def test_handler_sends_report_sql_and_csv() -> None:
    message = _FakeMessage(text=f"Show me positions for {WALLET} on 2025-12-31")

    await handle_message(message, _make_app())  # type: ignore[arg-type]

    assert len(message.answers) == 2
    assert message.answers[0].startswith("### Lending Positions for `7xKX...gAsU` on 2025-12-31")
    assert message.answers[1].startswith("```sql\nSELECT")
    assert len(message.documents) == 1
    assert message.documents[0].filename == "defi-positions.csv"


@pytest.mark.asyncio
async def test_handler_error_intent_has_no_sql_or_csv() -> None:
    message = _FakeMessage(text=f"what about {WALLET}?")

    await handle_message(message, _make_app())  # type: ignore[arg-type]

    assert len(message.answers) == 1
    assert "need a date" in message.answers[0]
    assert message.documents == []


@pytest.mark.asyncio
async def test_handler_hides_internal_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _boom(*_args: Any, **_kwargs: Any) -> None:
        raise RuntimeError("secret stack detail")

    monkeypatch.setattr("src.bot.handlers.answer_query", _boom)
    message = _FakeMessage(text=f"Show me positions for {WALLET} on 2025-12-31")

    await handle_message(message, _make_app())  # type: ignore[arg-type]

    assert message.answers == [INTERNAL_ERROR_REPLY]


def test_split_message_respects_limit_and_line_boundaries() -> None:
    text = "\n".join(f"| row {i} |" for i in range(100))
    chunks = split_message(text, limit=100)

    assert all(len(c) <= 100 for c in chunks)
    assert "\n".join(chunks) == text


def test_split_message_hard_splits_long_lines() -> None:
    chunks = split_message("x" * 250, limit=100)
    assert [len(c) for c in chunks] == [100, 100, 50]
