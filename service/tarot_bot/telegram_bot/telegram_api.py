"""
Telegram Bot API gateway.

Thin wrapper around python-telegram-bot's Bot for the four calls the bot
needs: send text, send photo, look up a chat member's role, upload a photo.
"""

from typing import Optional, Union

from telegram import Bot
from telegram.constants import ChatMemberStatus
from telegram.error import TelegramError

from .logging_config import bot_logger as logger

ChatId = Union[int, str]

ADMIN_STATUSES = (ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.OWNER)


class GatewayError(Exception):
    """A Telegram call failed and the caller needs to know."""


class TelegramGateway:
    """
    Messaging gateway used by the command handlers.

    send_message() is best-effort (logs and returns False on failure);
    send_photo() and upload_photo() raise GatewayError so callers can
    fall back.
    """

    def __init__(self, bot: Bot, upload_chat_id: Optional[ChatId] = None):
        self.bot = bot
        self.upload_chat_id = upload_chat_id

    @classmethod
    def from_token(cls, token: str, upload_chat_id: Optional[ChatId] = None) -> "TelegramGateway":
        return cls(Bot(token), upload_chat_id=upload_chat_id)

    async def initialize(self) -> None:
        await self.bot.initialize()

    async def shutdown(self) -> None:
        await self.bot.shutdown()

    async def send_message(self, chat_id: ChatId, text: str, parse_mode: Optional[str] = None) -> bool:
        """
        Send a text message.

        Returns:
            True if Telegram accepted the message
        """
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode=parse_mode)
            return True
        except TelegramError as e:
            logger.error(f"Failed to send message to chat_id={chat_id}: {e}")
            return False

    async def send_photo(
        self,
        chat_id: ChatId,
        photo: str,
        caption: Optional[str] = None,
        parse_mode: Optional[str] = "HTML"
    ) -> None:
        """
        Send a photo by Telegram file_id or public URL.

        Raises:
            GatewayError: Telegram rejected the photo or the request failed
        """
        try:
            await self.bot.send_photo(
                chat_id=chat_id,
                photo=photo,
                caption=caption,
                parse_mode=parse_mode
            )
        except TelegramError as e:
            raise GatewayError(f"Failed to send photo {photo} to chat_id={chat_id}: {e}") from e

    async def get_chat_member_status(self, chat_id: ChatId, user_id: int) -> Optional[str]:
        """Member status ("creator", "administrator", "member", ...) or None if unknown."""
        try:
            member = await self.bot.get_chat_member(chat_id=chat_id, user_id=user_id)
        except TelegramError as e:
            logger.warning(f"Failed to get chat member chat_id={chat_id} user_id={user_id}: {e}")
            return None
        return member.status

    async def is_admin(self, chat_id: ChatId, user_id: int) -> bool:
        """Chat creator or administrator. Lookup failures count as non-admin."""
        return await self.get_chat_member_status(chat_id, user_id) in ADMIN_STATUSES

    async def upload_photo(self, url: str) -> str:
        """
        Upload a photo by URL to the upload chat and return its file_id.

        Telegram fetches the URL itself; the returned file_id can be resent
        anywhere without another download.
        """
        if not self.upload_chat_id:
            raise GatewayError("No upload chat configured (BOT_CHAT_ID)")

        try:
            message = await self.bot.send_photo(chat_id=self.upload_chat_id, photo=url)
        except TelegramError as e:
            raise GatewayError(f"Failed to upload photo {url}: {e}") from e

        if not message.photo:
            raise GatewayError(f"Telegram returned no photo sizes for {url}")

        # Largest size last
        return message.photo[-1].file_id
