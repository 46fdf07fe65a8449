"""Application composition root.

This module wires together configuration and the query executor for the bot and CLI runtimes.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.allium.client import AlliumClient
from src.config.settings import Settings


@dataclass(frozen=True)
class App:
    """Shared application dependencies for handlers."""

    settings: Settings
    executor: AlliumClient


def create_app(settings: Settings) -> App:
    """Create the application container.

    Note:
        The executor owns an HTTP client. Call `await app.executor.aclose()` at shutdown.
    """

    executor = AlliumClient(
        settings.allium_api_key,
        url=settings.allium_mcp_url,
        timeout_s=settings.allium_timeout_s,
    )
    return App(settings=settings, executor=executor)
