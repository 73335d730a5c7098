"""
Bot lifecycle: builds the shared BotContext once and hands updates to the
dispatcher.
"""

from typing import Any

from tarot_bot.config import Settings, get_settings
from tarot_bot.services.ai_providers import build_providers
from tarot_bot.services.reading_generator import FallbackReadingGenerator
from tarot_bot.services.reading_store import create_reading_store
from .context import BotContext
from .dispatcher import dispatch_update
from .logging_config import bot_logger as logger
from .telegram_api import TelegramGateway


# Global context instance (initialized once)
_context: BotContext | None = None


def build_bot_context(settings: Settings) -> BotContext:
    providers = build_providers(settings)
    if not providers:
        logger.warning("No AI provider configured (GROQ_API_KEY / ANTHROPIC_API_KEY), readings will fail")

    return BotContext(
        settings=settings,
        store=create_reading_store(settings),
        gateway=TelegramGateway.from_token(
            settings.telegram_bot_token,
            upload_chat_id=settings.bot_chat_id or None
        ),
        generator=FallbackReadingGenerator(
            providers,
            max_attempts=settings.ai_max_attempts,
            retry_delay=settings.ai_retry_delay_seconds
        ),
    )


def get_bot_context() -> BotContext:
    """Get or create the bot context."""
    global _context

    if _context is None:
        _context = build_bot_context(get_settings())
        logger.info("Bot context initialized")

    return _context


async def handle_telegram_update(update_data: dict[str, Any], ctx: BotContext | None = None) -> None:
    """Process an incoming webhook update (awaited by the webhook endpoint)."""
    await dispatch_update(update_data, ctx or get_bot_context())


async def initialize_bot() -> None:
    """
    Initialize bot (call on startup).
    """
    ctx = get_bot_context()
    await ctx.gateway.initialize()
    logger.info("Bot initialized successfully")


async def shutdown_bot() -> None:
    """
    Shutdown bot (call on shutdown).
    """
    global _context
    if _context:
        await _context.gateway.shutdown()
        for provider in _context.generator.providers:
            await provider.close()
        _context = None
        logger.info("Bot shut down")
