"""Ask a single question from the command line.

Example:
    python -m src.cli "Show me positions for <wallet> on 2025-12-31" --csv positions.csv
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from src.app import create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings
from src.pipeline import ChatResponse, answer_query
from src.report.csv_export import markdown_tables_to_csv


async def ask(question: str, *, use_llm: bool) -> ChatResponse:
    """Run the pipeline once with settings loaded from the environment."""

    settings = load_settings()
    app = create_app(settings)
    try:
        return await answer_query(
            question,
            executor=app.executor,
            llm_enabled=use_llm and settings.llm_enabled,
            llm_api_key=settings.llm_api_key,
        )
    finally:
        await app.executor.aclose()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point: print the report and compiled SQL for one question."""

    parser = argparse.ArgumentParser(description="Query historical DeFi lending positions.")
    parser.add_argument("question", help="Natural-language question, e.g. a wallet and a date.")
    parser.add_argument("--csv", dest="csv_path", help="Write the report tables to this CSV file.")
    parser.add_argument(
        "--no-llm",
        action="store_true",
        help="Skip the LLM parser and use the deterministic rules parser only.",
    )
    args = parser.parse_args(argv)

    configure_logging()
    response = asyncio.run(ask(args.question, use_llm=not args.no_llm))

    print(response.report_text)
    if response.compiled_query:
        print("\n-- compiled query --")
        print(response.compiled_query)

    if args.csv_path:
        csv_text = markdown_tables_to_csv(response.report_text)
        if csv_text:
            Path(args.csv_path).write_text(csv_text, encoding="utf-8")
        else:
            print("(no table to export)", file=sys.stderr)

    return 1 if response.failed else 0


if __name__ == "__main__":
    sys.exit(main())
