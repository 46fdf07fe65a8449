"""Bot router composition (a single catch-all handler answers questions and help commands)."""

from __future__ import annotations

from aiogram import Router

from src.bot.handlers import handle_message

router = Router(name="positions")
router.message.register(handle_message)
