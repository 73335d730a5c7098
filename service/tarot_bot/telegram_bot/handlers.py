"""
Command handlers: /start and /help, /togglebot, /reading.

Each handler gets the BotContext plus the chat/user ids and talks to the
store, the gateway and the reading generator through it. Handlers answer
every failure with a chat message; only the dispatcher's catch-all sees
what slips through.
"""

import html
import re
from typing import Optional

from tarot_bot.services.card_meanings import find_general_meaning, get_image_path
from tarot_bot.services.reading_generator import ReadingGenerationError
from .context import BotContext
from .logging_config import bot_logger as logger

# Telegram rejects photo captions longer than this
CAPTION_LIMIT = 1024

HELP_TEXT = """The following commands are available:

/start - Start the bot

/help - Get help from the bot

/reading <question> - Get a tarot card reading for your question

/togglebot - Enable or disable the bot (admin only)"""

MSG_NO_QUESTION = "Please provide a question for your reading. Example: /reading Will I succeed?"
MSG_DISABLED = "The bot is currently disabled by an admin."
MSG_SHUFFLING = "Shuffling the deck and drawing a card for you..."
MSG_GENERATION_ERROR = "An error occurred while generating your reading. Please try again."
MSG_UNAVAILABLE = "The service is unavailable at the moment. Please try again later."
MSG_ADMINS_ONLY = "Only admins can use this command."
MSG_TOGGLE_ERROR = "An error occurred while toggling the bot state. Please try again later."

# "/reading", "/reading@TarotBot"
READING_PREFIX = re.compile(r"^/reading(@\w+)?\s*", re.IGNORECASE)


def daily_limit_message(limit: int) -> str:
    return f"You have reached your daily limit of {limit} readings. Please try again tomorrow."


def meaning_not_found_message(card: str, orientation: str) -> str:
    return f"Sorry, I couldn't find the meaning for {card} ({orientation}). Please try again."


def extract_question(text: str) -> str:
    """'/reading Will I get the job?' -> 'Will I get the job?'"""
    return READING_PREFIX.sub("", text.strip(), count=1).strip()


def format_caption(card: str, orientation: str, general_meaning: str, interpretation: str) -> str:
    return (
        f"<b>{html.escape(card)} ({html.escape(orientation)})</b>\n\n"
        f"<i>General Meaning:</i> {html.escape(general_meaning)}\n\n"
        f"<i>Interpretation:</i> {html.escape(interpretation)}"
    )


async def handle_help_command(ctx: BotContext, chat_id: int) -> None:
    """Handle /start and /help."""
    if not await ctx.gateway.send_message(chat_id, HELP_TEXT):
        logger.warning(f"Help message not delivered to chat_id={chat_id}")


async def handle_togglebot_command(ctx: BotContext, chat_id: int, user_id: int) -> None:
    """Handle /togglebot - admins flip the bot on/off for everyone."""
    if not await ctx.gateway.is_admin(chat_id, user_id):
        logger.info(f"Non-admin user_id={user_id} tried /togglebot in chat_id={chat_id}")
        await ctx.gateway.send_message(chat_id, MSG_ADMINS_ONLY)
        return

    try:
        state = await ctx.store.toggle_bot_state()
    except Exception as e:
        logger.error(f"Failed to toggle bot state: {e}", exc_info=True)
        await ctx.gateway.send_message(chat_id, MSG_TOGGLE_ERROR)
        return

    logger.info(f"Bot {'enabled' if state.enabled else 'disabled'} by user_id={user_id}")
    await ctx.gateway.send_message(
        chat_id,
        "Bot is now enabled." if state.enabled else "Bot is now disabled."
    )


async def _resolve_photo(ctx: BotContext, card: str, orientation: str) -> Optional[str]:
    """Uploaded Telegram file_id if we have one, else the public image URL."""
    ref = await ctx.store.get_image_ref(card, orientation)
    if ref:
        return ref

    base_url = ctx.settings.public_base_url
    if not base_url:
        return None
    return f"{base_url.rstrip('/')}/{get_image_path(card, orientation)}"


async def _deliver_reading(ctx: BotContext, chat_id: int, photo: Optional[str], caption: str) -> bool:
    """
    Send the card photo with caption, falling back to a plain text message.

    Returns:
        True if either the photo or the text fallback was delivered
    """
    if photo and len(caption) <= CAPTION_LIMIT:
        try:
            await ctx.gateway.send_photo(chat_id, photo, caption=caption, parse_mode="HTML")
            return True
        except Exception as e:
            logger.warning(f"Photo delivery failed, sending reading as text: {e}")

    return await ctx.gateway.send_message(chat_id, caption, parse_mode="HTML")


async def handle_reading_command(ctx: BotContext, chat_id: int, user_id: int, text: str) -> None:
    """
    Handle /reading <question>.

    Checks, in order: question present, bot enabled, daily limit (non-admins
    only). Usage is counted only after the reading reached the chat.
    """
    try:
        question = extract_question(text)
        if not question:
            await ctx.gateway.send_message(chat_id, MSG_NO_QUESTION)
            return

        state = await ctx.store.get_bot_state()
        if not state.enabled:
            await ctx.gateway.send_message(chat_id, MSG_DISABLED)
            return

        is_admin = await ctx.gateway.is_admin(chat_id, user_id)
        usage_key = str(user_id)
        today = ctx.today()

        if not is_admin:
            usage = await ctx.store.get_usage(usage_key, today)
            limit = ctx.settings.daily_reading_limit
            if usage >= limit:
                logger.info(f"user_id={user_id} hit daily limit ({usage}/{limit}) on {today}")
                await ctx.gateway.send_message(chat_id, daily_limit_message(limit))
                return

        # Best-effort; a lost ack doesn't stop the reading
        await ctx.gateway.send_message(chat_id, MSG_SHUFFLING)

        try:
            reading = await ctx.generator.generate(question)
        except ReadingGenerationError as e:
            logger.error(f"Reading generation failed for user_id={user_id}: {e}")
            await ctx.gateway.send_message(chat_id, MSG_GENERATION_ERROR)
            return

        if not (reading and reading.card and reading.orientation and reading.interpretation):
            logger.error(f"Malformed reading for user_id={user_id}: {reading!r}")
            await ctx.gateway.send_message(chat_id, MSG_GENERATION_ERROR)
            return

        orientation = reading.orientation.value
        found = find_general_meaning(reading.card, orientation)
        if found is None:
            logger.error(f"No general meaning found for {reading.card} ({orientation})")
            await ctx.gateway.send_message(chat_id, meaning_not_found_message(reading.card, orientation))
            return

        card, general_meaning = found
        photo = await _resolve_photo(ctx, card, orientation)
        caption = format_caption(card, orientation, general_meaning, reading.interpretation)

        if not await _deliver_reading(ctx, chat_id, photo, caption):
            logger.error(f"Reading for user_id={user_id} was not delivered to chat_id={chat_id}")
            return

        if not is_admin:
            # Read-then-write, see ReadingStore. The reading is already out, so a
            # failed increment is logged without the "unavailable" reply.
            try:
                count = await ctx.store.increment_usage(usage_key, today)
            except Exception as e:
                logger.error(f"Failed to record usage for user_id={user_id} on {today}: {e}", exc_info=True)
                return
            logger.info(f"user_id={user_id} used {count}/{ctx.settings.daily_reading_limit} readings today")

    except Exception as e:
        logger.error(f"Error in reading command: {e}", exc_info=True)
        await ctx.gateway.send_message(chat_id, MSG_UNAVAILABLE)
