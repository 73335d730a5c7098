#!/usr/bin/env python3
"""
Upload tarot card images to Telegram and store their file ids.

Usage: python -m tarot_bot.scripts.upload_images <base_url>
Example: python -m tarot_bot.scripts.upload_images https://example.com/tarot-images/

Image naming convention: <Card_Name>_<Orientation>.jpg
Example: The_Sun_Upright.jpg, The_Sun_Reversed.jpg

Photos are sent to BOT_CHAT_ID; Telegram keeps the file and the returned
file_id is reused for every reading afterwards.
"""

import argparse
import asyncio
import sys
from typing import Any, Awaitable, Callable, Iterable

from tarot_bot.config import get_settings
from tarot_bot.services.card_meanings import ORIENTATIONS, get_image_name, list_cards
from tarot_bot.services.reading_store import ReadingStore, SupabaseReadingStore
from tarot_bot.supabase_client import get_supabase_admin
from tarot_bot.telegram_bot.logging_config import bot_logger as logger
from tarot_bot.telegram_bot.telegram_api import TelegramGateway


async def upload_and_store_image(
    gateway: TelegramGateway,
    store: ReadingStore,
    base_url: str,
    card: str,
    orientation: str
) -> bool:
    """Upload one image and remember its file id. Never raises."""
    image_name = get_image_name(card, orientation)
    image_url = f"{base_url}{image_name}"

    try:
        logger.info(f"Uploading {image_name}...")
        file_id = await gateway.upload_photo(image_url)
        logger.info(f"Uploaded {image_name}, file ID: {file_id}")

        await store.set_image_ref(card, orientation, file_id)
        logger.info(f"Stored file ID for {card} ({orientation})")
        return True
    except Exception as e:
        logger.error(f"Error uploading {card} ({orientation}): {e}")
        return False


async def upload_all(
    gateway: TelegramGateway,
    store: ReadingStore,
    base_url: str,
    cards: Iterable[str],
    delay: float = 0.5,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> tuple[int, int]:
    """
    Upload both orientations of every card.

    Returns:
        (success_count, failure_count)
    """
    success_count = 0
    failure_count = 0

    for card in cards:
        for orientation in ORIENTATIONS:
            if await upload_and_store_image(gateway, store, base_url, card, orientation):
                success_count += 1
            else:
                failure_count += 1

        # Stay under Telegram's upload rate limit
        await sleep(delay)

    return success_count, failure_count


async def main(base_url: str) -> int:
    settings = get_settings()
    if not settings.bot_chat_id:
        logger.error("BOT_CHAT_ID is not set, nowhere to upload images")
        return 1

    # File ids must outlive this process
    if not (settings.supabase_url and settings.supabase_service_role_key):
        logger.error("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are not set, nowhere to store file ids")
        return 1

    gateway = TelegramGateway.from_token(settings.telegram_bot_token, upload_chat_id=settings.bot_chat_id)
    store = SupabaseReadingStore(get_supabase_admin(settings))

    logger.info("Starting image upload process...")
    await gateway.initialize()
    try:
        success_count, failure_count = await upload_all(
            gateway, store, base_url, list_cards(), delay=settings.upload_delay_seconds
        )
    finally:
        await gateway.shutdown()

    logger.info("Image upload process completed")
    logger.info(f"Successfully uploaded and stored {success_count} images")
    logger.info(f"Failed to upload {failure_count} images")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Upload tarot card images to Telegram")
    parser.add_argument("base_url", help="URL prefix the <Card_Name>_<Orientation>.jpg files are served under")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.base_url)))
