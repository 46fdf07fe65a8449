"""Intent parser orchestration (LLM first; rules-based fallback)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from src.intent.llm_parser import LLMParserError, llm_config_from_env, parse_intent_json_via_llm
from src.intent.rules_parser import parse_intent as parse_rules_intent
from src.intent.schema import IntentKind, RawIntent, intent_from_obj

logger = logging.getLogger(__name__)

ParseSource = Literal["llm", "rules"]

_KNOWN_KINDS = frozenset(kind.value for kind in IntentKind)


@dataclass(frozen=True)
class ParseResult:
    """Raw intent plus information about which parser produced it."""

    intent: RawIntent
    source: ParseSource


def _parse_via_llm(text: str, *, llm_api_key: str | None) -> RawIntent:
    cfg = llm_config_from_env(api_key=llm_api_key)
    obj: dict[str, Any] = parse_intent_json_via_llm(text, config=cfg)
    intent = intent_from_obj(obj)
    if intent.type not in _KNOWN_KINDS:
        raise ValueError(f"unknown intent type: {intent.type!r}")
    return intent


def parse_intent_with_source(
        text: str,
        *,
        llm_enabled: bool,
        llm_api_key: str | None = None,
) -> ParseResult:
    """Parse text into a raw intent.

    Strategy:
        1) If LLM mode is enabled, ask the LLM to produce intent JSON and validate its shape.
        2) On any failure (missing key, transport error, invalid JSON), fall back to the
           deterministic rules parser, which never fails.

    Reachability of the LLM is re-tested on every call; nothing is cached between requests.
    """

    if llm_enabled:
        try:
            return ParseResult(intent=_parse_via_llm(text, llm_api_key=llm_api_key), source="llm")
        except (LLMParserError, ValueError) as exc:
            # Invalid LLM output must never crash the pipeline; fall back to rules.
            logger.warning("llm parser unavailable, using rules: %s", exc)

    return ParseResult(intent=parse_rules_intent(text), source="rules")


def parse_intent(text: str, *, llm_enabled: bool, llm_api_key: str | None = None) -> RawIntent:
    """Parse text into a raw intent (convenience wrapper)."""

    return parse_intent_with_source(text, llm_enabled=llm_enabled, llm_api_key=llm_api_key).intent
