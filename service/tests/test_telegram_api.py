"""
Tests for the Telegram gateway and the image upload script, against a fake Bot.
"""

from types import SimpleNamespace

import pytest
from telegram.error import BadRequest, NetworkError

from tarot_bot.config import get_settings
from tarot_bot.scripts import upload_images
from tarot_bot.scripts.upload_images import upload_all
from tarot_bot.services.reading_store import InMemoryReadingStore
from tarot_bot.telegram_bot.telegram_api import GatewayError, TelegramGateway
from conftest import RecordingSleep


class FakeBot:
    def __init__(self, statuses=None, fail_on=()):
        self.statuses = statuses or {}
        self.fail_on = set(fail_on)
        self.sent = []
        self.photos = []

    async def send_message(self, chat_id, text, parse_mode=None):
        if "send_message" in self.fail_on:
            raise NetworkError("connection reset")
        self.sent.append((chat_id, text, parse_mode))

    async def send_photo(self, chat_id, photo, caption=None, parse_mode=None):
        if "send_photo" in self.fail_on or "Missing" in photo:
            raise BadRequest("Wrong file identifier/http url specified")
        self.photos.append((chat_id, photo, caption))
        return SimpleNamespace(photo=[
            SimpleNamespace(file_id=f"small-{len(self.photos)}"),
            SimpleNamespace(file_id=f"large-{len(self.photos)}"),
        ])

    async def get_chat_member(self, chat_id, user_id):
        if "get_chat_member" in self.fail_on:
            raise BadRequest("User not found")
        return SimpleNamespace(status=self.statuses.get(user_id, "member"))


class TestTelegramGateway:

    @pytest.mark.asyncio
    async def test_send_message(self):
        bot = FakeBot()
        assert await TelegramGateway(bot).send_message(1, "hi") is True
        assert bot.sent == [(1, "hi", None)]

    @pytest.mark.asyncio
    async def test_send_message_failure_returns_false(self):
        gateway = TelegramGateway(FakeBot(fail_on={"send_message"}))
        assert await gateway.send_message(1, "hi") is False

    @pytest.mark.asyncio
    async def test_send_photo_failure_raises(self):
        gateway = TelegramGateway(FakeBot(fail_on={"send_photo"}))
        with pytest.raises(GatewayError):
            await gateway.send_photo(1, "file-id", caption="caption")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,expected", [
        ("creator", True),
        ("administrator", True),
        ("member", False),
        ("restricted", False),
        ("left", False),
    ])
    async def test_is_admin(self, status, expected):
        gateway = TelegramGateway(FakeBot(statuses={7: status}))
        assert await gateway.is_admin(1, 7) is expected

    @pytest.mark.asyncio
    async def test_is_admin_lookup_failure(self):
        gateway = TelegramGateway(FakeBot(statuses={7: "creator"}, fail_on={"get_chat_member"}))
        assert await gateway.is_admin(1, 7) is False

    @pytest.mark.asyncio
    async def test_upload_photo_returns_largest_size(self):
        bot = FakeBot()
        gateway = TelegramGateway(bot, upload_chat_id=99)

        file_id = await gateway.upload_photo("https://img.example/The_Fool_Upright.jpg")

        assert file_id == "large-1"
        assert bot.photos[0][0] == 99

    @pytest.mark.asyncio
    async def test_upload_photo_needs_chat(self):
        with pytest.raises(GatewayError):
            await TelegramGateway(FakeBot()).upload_photo("https://img.example/x.jpg")


class TestUploadImages:

    @pytest.mark.asyncio
    async def test_uploads_both_orientations(self):
        bot = FakeBot()
        store = InMemoryReadingStore()
        sleep = RecordingSleep()

        success, failure = await upload_all(
            TelegramGateway(bot, upload_chat_id=99), store,
            "https://img.example/", ["The Fool", "The Sun"],
            delay=0.5, sleep=sleep
        )

        assert (success, failure) == (4, 0)
        assert [p[1] for p in bot.photos] == [
            "https://img.example/The_Fool_Upright.jpg",
            "https://img.example/The_Fool_Reversed.jpg",
            "https://img.example/The_Sun_Upright.jpg",
            "https://img.example/The_Sun_Reversed.jpg",
        ]
        assert await store.get_image_ref("The Sun", "reversed") == "large-4"
        assert sleep.delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_failures_are_counted(self):
        store = InMemoryReadingStore()

        success, failure = await upload_all(
            TelegramGateway(FakeBot(), upload_chat_id=99), store,
            "https://img.example/", ["The Fool", "Missing Card"],
            sleep=RecordingSleep()
        )

        assert (success, failure) == (2, 2)
        assert await store.get_image_ref("Missing Card", "upright") is None

    @pytest.mark.asyncio
    async def test_main_requires_supabase(self, monkeypatch):
        """Without Supabase the file ids would be lost on exit: nothing is uploaded."""
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "test-token")
        monkeypatch.setenv("BOT_CHAT_ID", "99")
        monkeypatch.setenv("SUPABASE_URL", "")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "")
        gateways = []
        monkeypatch.setattr(
            upload_images.TelegramGateway, "from_token",
            classmethod(lambda cls, *args, **kwargs: gateways.append(args))
        )

        get_settings.cache_clear()
        try:
            exit_code = await upload_images.main("https://img.example/")
        finally:
            get_settings.cache_clear()

        assert exit_code == 1
        assert gateways == []
