"""Allium explorer client (query execution over the MCP JSON-RPC endpoint).

The endpoint takes a `tools/call` request for `explorer_run_sql` and answers either with a plain
JSON-RPC envelope or with a server-sent event stream (`event: message` / `data: {...}`). Both are
unwrapped here; callers only see a `QueryResult` or a `QueryExecutionError`.

Failures are not retried: there is no deterministic substitute for query execution.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from src.allium.rows import QueryResult, rows_from_payload

logger = logging.getLogger(__name__)

DEFAULT_MCP_URL = "https://mcp.allium.so"
RUN_SQL_TOOL = "explorer_run_sql"

_SSE_DATA_PREFIX = "data: "


class QueryExecutionError(RuntimeError):
    """Raised when the query service is unreachable or reports an error."""


def _rpc_payload(sql: str) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {"name": RUN_SQL_TOOL, "arguments": {"sql": sql}},
    }


def decode_envelope(raw_text: str) -> dict[str, Any]:
    """Decode a JSON-RPC envelope from either an SSE stream or a plain JSON body."""

    text = (raw_text or "").strip()
    if text.startswith("{"):
        json_str = text
    else:
        data_line = next(
            (line for line in text.splitlines() if line.startswith(_SSE_DATA_PREFIX)),
            None,
        )
        if data_line is None:
            raise QueryExecutionError("No data in Allium response")
        json_str = data_line[len(_SSE_DATA_PREFIX):]

    try:
        envelope = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise QueryExecutionError("Allium response is not valid JSON") from exc
    if not isinstance(envelope, dict):
        raise QueryExecutionError("Unexpected Allium response format")
    return envelope


def result_from_envelope(envelope: dict[str, Any]) -> QueryResult:
    """Extract the query result from a decoded JSON-RPC envelope."""

    error = envelope.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise QueryExecutionError(f"Allium query error: {message}")

    result = envelope.get("result") or {}
    if not isinstance(result, dict):
        raise QueryExecutionError("Unexpected Allium response format")
    content = result.get("content")
    first = content[0] if isinstance(content, list) and content else None
    first_text = first.get("text") if isinstance(first, dict) else None

    if result.get("isError"):
        raise QueryExecutionError(f"Allium query error: {first_text or 'unknown error'}")

    # structuredContent carries the parsed data directly; older servers only send text content.
    payload = result.get("structuredContent")
    try:
        if payload is None:
            if not first_text:
                raise QueryExecutionError("No result data in Allium response")
            payload = json.loads(first_text)
        return rows_from_payload(payload)
    except ValueError as exc:
        raise QueryExecutionError(f"Unexpected Allium result: {exc}") from exc


class AlliumClient:
    """Async SQL executor backed by the Allium explorer."""

    def __init__(
            self,
            api_key: str | None,
            *,
            url: str = DEFAULT_MCP_URL,
            timeout_s: float = 60.0,
            transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._client = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    async def run_sql(self, sql: str) -> QueryResult:
        """Execute SQL text and return its rows.

        Raises:
            QueryExecutionError: On a missing API key, transport failure or server-reported error.
        """

        if not self._api_key:
            raise QueryExecutionError("ALLIUM_API_KEY is not set")

        try:
            resp = await self._client.post(
                self._url,
                json=_rpc_payload(sql),
                headers={
                    "Accept": "application/json, text/event-stream",
                    "X-API-KEY": self._api_key,
                },
            )
        except httpx.HTTPError as exc:
            raise QueryExecutionError(f"Allium connection error: {exc}") from exc

        if resp.status_code >= 400:
            raise QueryExecutionError(f"Allium API error ({resp.status_code}): {resp.text}")

        result = result_from_envelope(decode_envelope(resp.text))
        logger.debug("allium rows=%d row_count=%s", len(result.rows), result.row_count)
        return result

    async def aclose(self) -> None:
        await self._client.aclose()
