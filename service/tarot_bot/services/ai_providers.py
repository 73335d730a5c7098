"""
AI completion providers for tarot readings.

Both providers take the same system prompt and question and force a single
`tarot_reading` tool call. They return the raw tool arguments; validation
happens in the reading generator.

- GroqProvider: OpenAI SDK pointed at Groq's OpenAI-compatible endpoint
- ClaudeProvider: Anthropic SDK
"""

import json
from typing import Any

import anthropic
import openai

from tarot_bot.agents.prompts import (
    TAROT_READING_SCHEMA,
    TAROT_TOOL_DESCRIPTION,
    TAROT_TOOL_NAME,
    build_user_message,
)
from tarot_bot.config import Settings

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class ProviderError(Exception):
    """The provider call failed or did not answer through the tool."""


class CompletionProvider:
    """Interface: complete_structured(system_prompt, question) -> tool arguments."""

    name = "provider"

    async def complete_structured(self, system_prompt: str, question: str) -> dict[str, Any]:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class GroqProvider(CompletionProvider):
    name = "groq"

    def __init__(self, api_key: str, model: str, client: openai.AsyncOpenAI | None = None):
        self.model = model
        self.client = client or openai.AsyncOpenAI(api_key=api_key, base_url=GROQ_BASE_URL)

    async def complete_structured(self, system_prompt: str, question: str) -> dict[str, Any]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": build_user_message(question)},
            ],
            tools=[{
                "type": "function",
                "function": {
                    "name": TAROT_TOOL_NAME,
                    "description": TAROT_TOOL_DESCRIPTION,
                    "parameters": TAROT_READING_SCHEMA,
                },
            }],
            tool_choice={"type": "function", "function": {"name": TAROT_TOOL_NAME}},
        )

        message = response.choices[0].message if response.choices else None
        tool_calls = getattr(message, "tool_calls", None)
        if not tool_calls:
            raise ProviderError("No tool call in Groq response")

        try:
            arguments = json.loads(tool_calls[0].function.arguments)
        except (TypeError, json.JSONDecodeError) as e:
            raise ProviderError(f"Groq tool arguments are not valid JSON: {e}") from e

        if not isinstance(arguments, dict):
            raise ProviderError("Groq tool arguments are not an object")

        return arguments

    async def close(self) -> None:
        await self.client.close()


class ClaudeProvider(CompletionProvider):
    name = "claude"

    def __init__(self, api_key: str, model: str, client: anthropic.AsyncAnthropic | None = None):
        self.model = model
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

    async def complete_structured(self, system_prompt: str, question: str) -> dict[str, Any]:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=1024,
            system=system_prompt,
            messages=[{"role": "user", "content": build_user_message(question)}],
            tools=[{
                "name": TAROT_TOOL_NAME,
                "description": TAROT_TOOL_DESCRIPTION,
                "input_schema": TAROT_READING_SCHEMA,
            }],
            tool_choice={"type": "tool", "name": TAROT_TOOL_NAME},
        )

        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and block.name == TAROT_TOOL_NAME:
                if not isinstance(block.input, dict):
                    raise ProviderError("Claude tool input is not an object")
                return block.input

        raise ProviderError("No tool call in Claude response")

    async def close(self) -> None:
        await self.client.close()


def build_providers(settings: Settings) -> list[CompletionProvider]:
    """Configured providers in fallback order: Groq first, then Claude."""
    providers: list[CompletionProvider] = []
    if settings.groq_api_key:
        providers.append(GroqProvider(settings.groq_api_key, settings.groq_model))
    if settings.anthropic_api_key:
        providers.append(ClaudeProvider(settings.anthropic_api_key, settings.anthropic_model))
    return providers
