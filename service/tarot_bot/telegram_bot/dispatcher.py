"""
Message dispatcher - filters incoming updates and routes commands.

Routing is a plain prefix match, checked in order:
  /start, /help  -> help
  /togglebot     -> toggle bot on/off
  /reading       -> tarot reading
  anything else  -> help
"""

from typing import Any

from pydantic import ValidationError

from tarot_bot.agents.schemas import TelegramUpdate
from .context import BotContext
from .handlers import handle_help_command, handle_reading_command, handle_togglebot_command
from .logging_config import bot_logger as logger

COMMAND_HELP = "help"
COMMAND_TOGGLE = "togglebot"
COMMAND_READING = "reading"


def route_command(text: str) -> str:
    """Name of the handler for a message text."""
    if text.startswith("/start") or text.startswith("/help"):
        return COMMAND_HELP
    if text.startswith("/togglebot"):
        return COMMAND_TOGGLE
    if text.startswith("/reading"):
        return COMMAND_READING
    return COMMAND_HELP


async def dispatch_update(update_data: dict[str, Any], ctx: BotContext) -> None:
    """
    Process one webhook update to completion.

    Never raises for handler errors: the webhook must answer 200 so Telegram
    doesn't redeliver the update.
    """
    try:
        update = TelegramUpdate.model_validate(update_data)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed update: {e.errors()[:1]}")
        return

    message = update.message
    if message is None:
        logger.debug(f"Ignoring update {update.update_id} without a message")
        return

    chat_id = message.chat.id
    designated = ctx.settings.designated_chat_id
    if designated and str(chat_id) != str(designated):
        logger.info(f"Ignoring message from non-designated chat: {chat_id}")
        return

    user_id = message.from_user.id if message.from_user else None
    text = (message.text or "").strip()

    if not text:
        logger.info(f"Empty message from user_id={user_id} in chat_id={chat_id}, sending help")
        command = COMMAND_HELP
    else:
        command = route_command(text)

    # Channel posts have no sender; admin and usage checks need one
    if user_id is None and command != COMMAND_HELP:
        logger.info(f"Ignoring {command} without sender in chat_id={chat_id}")
        return

    logger.info(f"chat_id={chat_id} user_id={user_id} command={command} text_len={len(text)}")

    try:
        if command == COMMAND_TOGGLE:
            await handle_togglebot_command(ctx, chat_id, user_id)
        elif command == COMMAND_READING:
            await handle_reading_command(ctx, chat_id, user_id, text)
        else:
            await handle_help_command(ctx, chat_id)
    except Exception as e:
        logger.error(f"Handler '{command}' failed for chat_id={chat_id}: {e}", exc_info=True)
