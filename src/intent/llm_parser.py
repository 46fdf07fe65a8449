"""LLM-based intent parser (primary path).

The LLM is only allowed to produce **intent JSON**. Its reply must be exactly one JSON object; the
caller validates it against the schema and falls back to the rules parser on any failure.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import date
from http.client import HTTPException
from pathlib import Path
from string import Template
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from src.intent import catalog
from src.sql.columns import POSITION_COLUMNS

ANTHROPIC_VERSION = "2023-06-01"


class LLMParserError(RuntimeError):
    """Raised when the LLM parser fails to return a JSON object."""


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the Anthropic Messages API call."""

    api_key: str
    model: str = "claude-sonnet-4-20250514"
    api_base: str = "https://api.anthropic.com/v1"
    timeout_s: float = 30.0
    max_tokens: int = 500


def _load_prompt() -> str:
    prompt_path = Path(__file__).resolve().parent / "prompt_intent_v1.md"
    return prompt_path.read_text(encoding="utf-8")


def render_prompt(today: date | None = None) -> str:
    """Render the system instruction with the data catalog and today's date."""

    return Template(_load_prompt()).substitute(
        fact_table=catalog.FACT_TABLE,
        chain=catalog.SUPPORTED_CHAIN.capitalize(),
        project=catalog.SUPPORTED_PROJECT,
        protocol=catalog.SUPPORTED_PROTOCOL,
        tokens=", ".join(catalog.SUPPORTED_TOKENS),
        data_range=catalog.data_range_label(),
        columns=", ".join(POSITION_COLUMNS),
        today=(today or date.today()).isoformat(),
    )


def _strip_code_fences(text: str) -> str:
    value = (text or "").strip()
    if value.startswith("```"):
        value = value.strip("`")
        # After stripping backticks, try to remove leading "json" marker.
        value = value.removeprefix("json").strip()
    return value


def _messages_url(api_base: str) -> str:
    return api_base.rstrip("/") + "/messages"


def _reply_text(decoded: Any) -> str:
    blocks = decoded["content"]
    return "".join(block["text"] for block in blocks if block.get("type") == "text")


def parse_intent_json_via_llm(user_text: str, *, config: LLMConfig) -> dict[str, Any]:
    """Call the LLM and return the parsed JSON object.

    The call targets the Anthropic `/v1/messages` API.
    """

    payload = {
        "model": config.model,
        "max_tokens": config.max_tokens,
        "temperature": 0,
        "system": render_prompt(),
        "messages": [{"role": "user", "content": user_text}],
    }

    req = Request(
        _messages_url(config.api_base),
        method="POST",
        headers={
            "x-api-key": config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        },
        data=json.dumps(payload).encode(),
    )

    try:
        with urlopen(req, timeout=config.timeout_s) as resp:  # noqa: S310 (explicit LLM endpoint)
            body = resp.read()
    except HTTPError as exc:
        raise LLMParserError(f"LLM HTTP error: {exc.code}") from exc
    except (URLError, HTTPException, OSError) as exc:
        raise LLMParserError("LLM connection error") from exc

    try:
        content = _reply_text(json.loads(body))
    except Exception as exc:  # noqa: BLE001
        raise LLMParserError("Unexpected LLM response format") from exc

    try:
        obj = json.loads(_strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise LLMParserError("LLM did not return valid JSON") from exc

    if not isinstance(obj, dict):
        raise LLMParserError("LLM did not return a JSON object")
    return obj


def llm_config_from_env(*, api_key: str | None = None) -> LLMConfig:
    """Build LLM config from environment variables.

    Environment variables (optional):
        - LLM_MODEL
        - LLM_API_BASE
        - LLM_TIMEOUT_S
    """

    key = api_key or os.getenv("LLM_API_KEY") or os.getenv("ANTHROPIC_API_KEY") or ""
    if not key:
        raise LLMParserError("LLM_API_KEY is required")

    timeout_s = float(os.getenv("LLM_TIMEOUT_S") or "30")
    return LLMConfig(
        api_key=key,
        model=os.getenv("LLM_MODEL") or "claude-sonnet-4-20250514",
        api_base=os.getenv("LLM_API_BASE") or "https://api.anthropic.com/v1",
        timeout_s=timeout_s,
    )
