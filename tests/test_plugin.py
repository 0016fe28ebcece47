"""Tests for plugin registration and dispatch."""
import pytest

from broadcastbot.config.settings import Settings
from broadcastbot.core.interfaces import Action
from broadcastbot.core.models import Memory, Content
from broadcastbot.plugin import Plugin, BroadcastPlugin, DiscordAttachmentsPlugin

from conftest import make_edge, make_feed, make_trade, make_trade_memory


class EchoAction(Action):
    name = "ECHO"
    similes = ["REPEAT"]

    async def handler(self, message, state=None, options=None, callback=None):
        return message.content.text


class ShoutAction(EchoAction):
    name = "SHOUT"
    similes = ["repeat"]

    async def handler(self, message, state=None, options=None, callback=None):
        return message.content.text.upper()


class TestPlugin:
    def test_first_registration_wins_on_duplicate_trigger(self):
        echo, shout = EchoAction(), ShoutAction()
        plugin = Plugin(actions=[echo, shout], evaluators=[])

        assert plugin.resolve("repeat") is echo
        assert plugin.resolve(" shout ") is shout
        assert plugin.triggers == ["ECHO", "REPEAT", "SHOUT"]

    @pytest.mark.asyncio
    async def test_unknown_trigger_returns_none(self):
        plugin = Plugin(actions=[EchoAction()], evaluators=[])

        assert await plugin.dispatch("NOPE", Memory(content=Content(text="hi"))) is None


class TestBroadcastPlugin:
    """Test the wired broadcast plugin."""

    def test_registers_actions_and_evaluators(self, context):
        plugin = BroadcastPlugin(context, config=Settings(BROADCAST_PAGE_SIZE=25))

        assert plugin.resolve("GET_LATEST_BROADCASTS") is plugin.fetch_broadcasts
        assert plugin.resolve("summarize_broadcasts") is plugin.fetch_broadcasts
        assert plugin.fetch_broadcasts.page_size == 25
        assert plugin.resolve("fetchProfilesAction").name == "fetchProfilesAction"
        assert plugin.resolve("QUERY_SERVER").name == "serverApiAction"
        assert plugin.resolve("GET_RECENT_TRADES").name == "PROVIDE_BROADCAST_DATA"
        assert plugin.resolve("CHECK_FACTS").name == "factEvaluator"

    @pytest.mark.asyncio
    async def test_dispatch_action_then_evaluator(self, context, callback, user_message):
        context.graphql.fetch_broadcasts.return_value = make_feed([make_edge(username="alice")])
        plugin = BroadcastPlugin(context)

        assert await plugin.dispatch("FETCH_BROADCASTS", user_message, callback=callback) is True

        text = await plugin.dispatch("GET_USER_TRADES", Memory(room_id="room-1", content=Content(text="trades by alice")))
        assert "alice: ABC position secured - 1.5M tokens" in text

    @pytest.mark.asyncio
    async def test_evaluator_reads_stored_memories(self, context, store):
        await store.create_memory(make_trade_memory([make_trade("bob", "c:XYZ", "2500000")]))
        plugin = BroadcastPlugin(context)

        text = await plugin.dispatch("PROVIDE_BROADCAST_DATA", Memory(room_id="room-1", content=Content(text="summary")))

        assert "XYZ:\nTotal Volume: 2.5M tokens" in text


class TestDiscordAttachmentsPlugin:
    @pytest.mark.asyncio
    async def test_non_discord_message_is_declined(self, context, callback):
        plugin = DiscordAttachmentsPlugin(context)
        message = Memory(room_id="room-1", content=Content(text="summarize the pdf", source="slack"))

        assert await plugin.dispatch("SUMMARIZE_FILES", message, callback=callback) is None
        callback.assert_not_awaited()
