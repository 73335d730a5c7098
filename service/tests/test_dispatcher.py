"""
Tests for update filtering and command routing.
"""

import pytest

from tarot_bot.telegram_bot import dispatcher
from tarot_bot.telegram_bot.dispatcher import (
    COMMAND_HELP,
    COMMAND_READING,
    COMMAND_TOGGLE,
    dispatch_update,
    route_command,
)
from tarot_bot.telegram_bot.handlers import HELP_TEXT, MSG_ADMINS_ONLY
from conftest import CHAT_ID, USER_ID


def make_update(text=None, chat_id=CHAT_ID, user_id=USER_ID):
    message = {"message_id": 10, "chat": {"id": chat_id, "type": "supergroup"}, "from": {"id": user_id, "is_bot": False}}
    if text is not None:
        message["text"] = text
    return {"update_id": 1000, "message": message}


class TestRouteCommand:

    @pytest.mark.parametrize("text,expected", [
        ("/start", COMMAND_HELP),
        ("/help", COMMAND_HELP),
        ("/togglebot", COMMAND_TOGGLE),
        ("/togglebot@TarotBot", COMMAND_TOGGLE),
        ("/reading Will I win?", COMMAND_READING),
        ("/reading", COMMAND_READING),
        ("hello there", COMMAND_HELP),
        ("/unknown", COMMAND_HELP),
    ])
    def test_routes(self, text, expected):
        assert route_command(text) == expected


class TestDispatchUpdate:

    @pytest.mark.asyncio
    async def test_help_routed(self, make_context, gateway):
        await dispatch_update(make_update("/help"), make_context())
        assert gateway.messages == [(CHAT_ID, HELP_TEXT)]

    @pytest.mark.asyncio
    async def test_unknown_text_gets_help(self, make_context, gateway):
        await dispatch_update(make_update("what is this bot?"), make_context())
        assert gateway.texts == [HELP_TEXT]

    @pytest.mark.asyncio
    async def test_empty_text_gets_help(self, make_context, gateway):
        await dispatch_update(make_update("   "), make_context())
        assert gateway.texts == [HELP_TEXT]

    @pytest.mark.asyncio
    async def test_missing_text_gets_help(self, make_context, gateway):
        await dispatch_update(make_update(None), make_context())
        assert gateway.texts == [HELP_TEXT]

    @pytest.mark.asyncio
    async def test_togglebot_routed(self, make_context, gateway):
        await dispatch_update(make_update("/togglebot"), make_context())
        assert gateway.texts == [MSG_ADMINS_ONLY]

    @pytest.mark.asyncio
    async def test_reading_routed(self, make_context, gateway):
        await dispatch_update(make_update("/reading Will I get the job?"), make_context())
        assert "The Fool (upright)" in gateway.texts[-1]

    @pytest.mark.asyncio
    async def test_non_designated_chat_ignored(self, make_context, gateway, settings):
        ctx = make_context(settings_override=settings.model_copy(update={"designated_chat_id": "-100999"}))

        await dispatch_update(make_update("/help"), ctx)

        assert gateway.messages == []

    @pytest.mark.asyncio
    async def test_designated_chat_answered(self, make_context, gateway, settings):
        ctx = make_context(settings_override=settings.model_copy(update={"designated_chat_id": str(CHAT_ID)}))

        await dispatch_update(make_update("/help"), ctx)

        assert gateway.texts == [HELP_TEXT]

    @pytest.mark.asyncio
    async def test_update_without_message_ignored(self, make_context, gateway):
        await dispatch_update({"update_id": 5, "edited_message": {"text": "/help"}}, make_context())
        assert gateway.messages == []

    @pytest.mark.asyncio
    async def test_malformed_update_ignored(self, make_context, gateway):
        await dispatch_update({"message": {"chat": {"id": "not-a-number"}}}, make_context())
        assert gateway.messages == []

    @pytest.mark.asyncio
    async def test_handler_failure_is_swallowed(self, make_context, gateway, monkeypatch):
        async def broken_help(ctx, chat_id):
            raise RuntimeError("telegram exploded")

        monkeypatch.setattr(dispatcher, "handle_help_command", broken_help)

        # Must not raise
        await dispatch_update(make_update("/help"), make_context())

    @pytest.mark.asyncio
    async def test_help_without_sender(self, make_context, gateway):
        update = make_update("/help")
        del update["message"]["from"]

        await dispatch_update(update, make_context())

        assert gateway.texts == [HELP_TEXT]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["/reading Will it work?", "/togglebot"])
    async def test_commands_without_sender_ignored(self, make_context, gateway, store, text):
        update = make_update(text)
        del update["message"]["from"]

        await dispatch_update(update, make_context())

        assert gateway.messages == []
        assert (await store.get_bot_state()).enabled is True
