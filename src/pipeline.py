"""Query pipeline: utterance -> intent -> SQL -> rows -> Markdown report.

Contract: the pipeline's own problems (unparseable or incomplete questions, unsafe values) are
answered with a normal `error` response and a plain-language hint. Only a query execution failure is
reported with `failed=True`, still wrapped in a user-facing message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import monotonic
from typing import Protocol

from src.allium.client import QueryExecutionError
from src.allium.rows import QueryResult
from src.intent import catalog
from src.intent.parser import parse_intent_with_source
from src.intent.schema import (
    ComparisonIntent,
    ErrorIntent,
    HelpIntent,
    IntentKind,
    PositionIntent,
    RangeIntent,
    SnapshotIntent,
    UNSUPPORTED_KIND_MESSAGE,
    to_query_intent,
)
from src.report.formatters import format_comparison, format_range, format_snapshot
from src.sql.builder import QueryCompilerError, compile_query

logger = logging.getLogger(__name__)

HELP_MESSAGE = (
    "I can help you look up historical DeFi lending positions on "
    f"{catalog.SUPPORTED_CHAIN.capitalize()} ({catalog.SUPPORTED_PROJECT.capitalize()}). Try:\n\n"
    "- **Snapshot:** \"Show me positions for `<wallet>` on 2025-12-31\"\n"
    "- **Range:** \"Show me positions for `<wallet>` from 2025-10-01 to 2025-12-31\"\n"
    "- **Compare:** \"Compare `<wallet>` positions on 2025-09-30 vs 2025-12-31\"\n\n"
    f"Available tokens: {', '.join(catalog.SUPPORTED_TOKENS)}\n"
    f"Date range: {catalog.data_range_label()}"
)
DEFAULT_ERROR_MESSAGE = "I couldn't understand that query."


class QueryExecutor(Protocol):
    async def run_sql(self, sql: str) -> QueryResult: ...


@dataclass(frozen=True)
class ChatResponse:
    """Report text plus the intent kind and, for data-bearing kinds, the SQL that produced it."""

    report_text: str
    intent_kind: str
    compiled_query: str | None = None
    failed: bool = False


def _format_rows(intent: PositionIntent, result: QueryResult) -> str:
    if isinstance(intent, SnapshotIntent):
        return format_snapshot(result.rows)
    if isinstance(intent, RangeIntent):
        return format_range(result.rows)
    return format_comparison(result.rows, intent.date1.isoformat(), intent.date2.isoformat())


async def answer_query(
        text: str,
        *,
        executor: QueryExecutor,
        llm_enabled: bool,
        llm_api_key: str | None = None,
) -> ChatResponse:
    """Answer one natural-language question about a wallet's lending positions.

    Raises nothing for bad input; see the module docstring for the failure contract.
    """

    started = monotonic()

    parse_result = parse_intent_with_source(text, llm_enabled=llm_enabled, llm_api_key=llm_api_key)
    intent = to_query_intent(parse_result.intent)

    if isinstance(intent, HelpIntent):
        return ChatResponse(report_text=intent.message or HELP_MESSAGE, intent_kind=IntentKind.help)
    if isinstance(intent, ErrorIntent):
        logger.info("unsupported source=%s reason=%s", parse_result.source, intent.message)
        return ChatResponse(
            report_text=intent.message or DEFAULT_ERROR_MESSAGE,
            intent_kind=IntentKind.error,
        )
    if not isinstance(intent, (SnapshotIntent, RangeIntent, ComparisonIntent)):
        return ChatResponse(report_text=UNSUPPORTED_KIND_MESSAGE, intent_kind=IntentKind.error)

    try:
        compiled = compile_query(intent)
    except QueryCompilerError as exc:
        logger.info("rejected source=%s kind=%s reason=%s", parse_result.source, intent.kind, exc)
        return ChatResponse(report_text=str(exc), intent_kind=IntentKind.error)

    try:
        result = await executor.run_sql(compiled.sql)
    except QueryExecutionError as exc:
        logger.exception("query execution failed kind=%s", compiled.kind)
        return ChatResponse(
            report_text=f"Something went wrong: {exc}",
            intent_kind=IntentKind.error,
            failed=True,
        )

    report = _format_rows(intent, result)

    latency_ms = int((monotonic() - started) * 1000)
    logger.info(
        "handled source=%s kind=%s rows=%d latency_ms=%d",
        parse_result.source,
        compiled.kind,
        len(result.rows),
        latency_ms,
    )
    return ChatResponse(report_text=report, intent_kind=compiled.kind, compiled_query=compiled.sql)
