"""aiogram message handlers.

Every incoming message gets the report text (split to Telegram's message size limit), followed by
the compiled SQL and a CSV export when the answer contains a table. Internal errors are logged and
answered with a fixed apology; stack traces never reach the user.
"""

from __future__ import annotations

import logging

from aiogram.types import BufferedInputFile, Message

from src.app import App
from src.pipeline import HELP_MESSAGE, ChatResponse, answer_query
from src.report.csv_export import CSV_FILENAME, markdown_tables_to_csv

logger = logging.getLogger(__name__)

TELEGRAM_MESSAGE_LIMIT = 4096
INTERNAL_ERROR_REPLY = "Something went wrong while handling your question. Please try again."

_HELP_COMMANDS = frozenset({"/start", "/help"})


def _is_command_text(text: str) -> bool:
    return text.lstrip().startswith("/")


def split_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    """Split text into chunks of at most `limit` characters, preferring line boundaries."""

    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return [c.rstrip("\n") for c in chunks if c.strip()]


async def _send_response(message: Message, response: ChatResponse) -> None:
    for chunk in split_message(response.report_text):
        await message.answer(chunk)

    if response.compiled_query:
        for chunk in split_message(f"```sql\n{response.compiled_query}\n```"):
            await message.answer(chunk)

        csv_text = markdown_tables_to_csv(response.report_text)
        if csv_text:
            await message.answer_document(
                BufferedInputFile(csv_text.encode("utf-8"), filename=CSV_FILENAME)
            )


async def handle_message(message: Message, app: App) -> None:
    """Handle any incoming Telegram message and reply with a position report."""

    raw_text = message.text or message.caption or ""
    if not raw_text.strip():
        await message.answer(HELP_MESSAGE)
        return
    if _is_command_text(raw_text):
        command = raw_text.split()[0].split("@")[0].lower()
        if command not in _HELP_COMMANDS:
            logger.info("unknown command=%s", command)
        await message.answer(HELP_MESSAGE)
        return

    # noinspection PyBroadException
    try:
        response = await answer_query(
            raw_text,
            executor=app.executor,
            llm_enabled=app.settings.llm_enabled,
            llm_api_key=app.settings.llm_api_key,
        )
    except Exception:
        # Handler boundary: internal errors must not leak details to the user.
        logger.exception("handler failed")
        await message.answer(INTERNAL_ERROR_REPLY)
        return

    if response.failed:
        logger.warning("query service failure reported to user")
    await _send_response(message, response)
