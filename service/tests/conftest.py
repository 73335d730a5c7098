"""
Shared fakes for the tarot bot tests.

FakeGateway and FakeProvider stand in for Telegram and the AI SDKs;
persistence uses the real InMemoryReadingStore.
"""

from typing import Any, Optional

import pytest

from tarot_bot.config import Settings
from tarot_bot.services.ai_providers import CompletionProvider
from tarot_bot.services.reading_generator import FallbackReadingGenerator
from tarot_bot.services.reading_store import InMemoryReadingStore
from tarot_bot.telegram_bot.context import BotContext
from tarot_bot.telegram_bot.telegram_api import GatewayError

TODAY = "2024-05-01"
CHAT_ID = -100123
ADMIN_ID = 1
USER_ID = 42

FOOL_READING = {"card": "The Fool", "orientation": "upright", "interpretation": "New beginnings"}


class FakeGateway:
    """Records everything the handlers send."""

    def __init__(self, admins=(), fail_photo: bool = False, fail_text: bool = False):
        self.admins = set(admins)
        self.fail_photo = fail_photo
        self.fail_text = fail_text
        self.messages: list[tuple[Any, str]] = []
        self.photos: list[tuple[Any, str, Optional[str]]] = []

    async def send_message(self, chat_id, text, parse_mode=None) -> bool:
        if self.fail_text:
            return False
        self.messages.append((chat_id, text))
        return True

    async def send_photo(self, chat_id, photo, caption=None, parse_mode="HTML") -> None:
        if self.fail_photo:
            raise GatewayError(f"Failed to send photo {photo}")
        self.photos.append((chat_id, photo, caption))

    async def is_admin(self, chat_id, user_id) -> bool:
        return user_id in self.admins

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.messages]


class FakeProvider(CompletionProvider):
    """
    Replays scripted answers: dicts are returned, exceptions raised.
    The last answer repeats once the script runs out.
    """

    def __init__(self, name: str, *answers):
        self.name = name
        self.answers = list(answers)
        self.calls: list[str] = []

    async def complete_structured(self, system_prompt: str, question: str) -> dict[str, Any]:
        self.calls.append(question)
        answer = self.answers[min(len(self.calls), len(self.answers)) - 1]
        if isinstance(answer, Exception):
            raise answer
        return answer


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        telegram_bot_token="test-token",
        telegram_webhook_secret="",
        designated_chat_id="",
        public_base_url="",
        supabase_url="",
        supabase_service_role_key="",
    )


@pytest.fixture
def store() -> InMemoryReadingStore:
    return InMemoryReadingStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(admins={ADMIN_ID})


def make_generator(*providers, max_attempts: int = 3) -> FallbackReadingGenerator:
    return FallbackReadingGenerator(providers, max_attempts=max_attempts, retry_delay=1.0, sleep=RecordingSleep())


@pytest.fixture
def make_context(settings, store, gateway):
    def _make(*providers, settings_override: Optional[Settings] = None) -> BotContext:
        if not providers:
            providers = (FakeProvider("groq", FOOL_READING),)
        return BotContext(
            settings=settings_override or settings,
            store=store,
            gateway=gateway,
            generator=make_generator(*providers),
            today=lambda: TODAY,
        )
    return _make
