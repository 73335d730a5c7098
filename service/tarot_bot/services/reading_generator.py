"""
Fallback reading generator.

Runs the providers in order. Each provider gets `max_attempts` tries with a
fixed delay between them; when a provider is exhausted the next one takes
over. If every provider is exhausted, a single ReadingGenerationError with
the full attempt log is raised.

A provider answer only counts as a success once it validates into a
TarotReading; a missing or malformed tool call is a failed attempt like any
other error.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from pydantic import ValidationError

from tarot_bot.agents.prompts import TAROT_SYSTEM_PROMPT
from tarot_bot.agents.schemas import TarotReading
from tarot_bot.telegram_bot.logging_config import bot_logger as logger
from .ai_providers import CompletionProvider


@dataclass(frozen=True)
class MalformedResponse:
    """Provider answered, but not with a usable card/orientation/interpretation."""
    reason: str


@dataclass(frozen=True)
class AttemptRecord:
    provider: str
    attempt: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReadingGenerationError(Exception):
    """All providers exhausted their attempts."""

    def __init__(self, attempts: Sequence[AttemptRecord]):
        self.attempts = list(attempts)
        providers = ", ".join(dict.fromkeys(a.provider for a in self.attempts)) or "none configured"
        super().__init__(
            f"Failed to generate tarot reading after {len(self.attempts)} attempts ({providers})"
        )


def validate_reading(payload: Any) -> Union[TarotReading, MalformedResponse]:
    """Check tool arguments before any field is used."""
    if not isinstance(payload, dict):
        return MalformedResponse(f"expected an object, got {type(payload).__name__}")

    missing = [f for f in ("card", "orientation", "interpretation") if not payload.get(f)]
    if missing:
        return MalformedResponse(f"missing fields: {', '.join(missing)}")

    try:
        return TarotReading.model_validate(payload)
    except ValidationError as e:
        return MalformedResponse(f"invalid fields: {e.errors()[0].get('msg', str(e))}")


class FallbackReadingGenerator:
    def __init__(
        self,
        providers: Sequence[CompletionProvider],
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.providers = list(providers)
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        # Attempt log of the most recent generate() call
        self.last_attempts: list[AttemptRecord] = []

    async def generate(self, question: str) -> TarotReading:
        """
        Get a reading for the question.

        Raises:
            ReadingGenerationError: every attempt on every provider failed
        """
        attempts: list[AttemptRecord] = []
        self.last_attempts = attempts

        for index, provider in enumerate(self.providers):
            if index > 0:
                logger.warning(f"Falling back to provider '{provider.name}'")

            for attempt in range(1, self.max_attempts + 1):
                try:
                    payload = await provider.complete_structured(TAROT_SYSTEM_PROMPT, question)
                    result = validate_reading(payload)
                    if isinstance(result, MalformedResponse):
                        raise ValueError(f"Malformed response: {result.reason}")
                except Exception as e:
                    attempts.append(AttemptRecord(provider.name, attempt, error=str(e) or type(e).__name__))
                    logger.warning(
                        f"Provider '{provider.name}' attempt {attempt}/{self.max_attempts} failed: {e}"
                    )
                    if attempt < self.max_attempts:
                        await self._sleep(self.retry_delay)
                    continue

                attempts.append(AttemptRecord(provider.name, attempt))
                logger.info(
                    f"Reading from '{provider.name}' on attempt {attempt}: "
                    f"{result.card} ({result.orientation.value})"
                )
                return result

        raise ReadingGenerationError(attempts)
