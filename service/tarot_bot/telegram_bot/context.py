"""
Dependencies shared by the command handlers.

Built once at startup (see bot.py) and passed to every handler, so handlers
never read settings or create clients themselves.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from tarot_bot.config import Settings
from tarot_bot.services.reading_generator import FallbackReadingGenerator
from tarot_bot.services.reading_store import ReadingStore
from .telegram_api import TelegramGateway


def utc_today() -> str:
    """Today's UTC calendar date as YYYY-MM-DD."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


@dataclass(frozen=True)
class BotContext:
    settings: Settings
    store: ReadingStore
    gateway: TelegramGateway
    generator: FallbackReadingGenerator
    today: Callable[[], str] = field(default=utc_today)
