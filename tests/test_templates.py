"""Tests for prompt composition helpers."""
import pytest

from broadcastbot.core.models import Memory, Content, Attachment
from broadcastbot.services.templates import compose_context, compose_state, parse_json_object, format_message


class TestComposeContext:
    def test_fills_known_and_blanks_unknown(self):
        template = "Hi {{senderName}}, objective: {{objective}}{{missing}}."

        assert compose_context({"senderName": "alice", "objective": 42}, template) == "Hi alice, objective: 42."


class TestParseJsonObject:
    def test_fenced_block(self):
        text = 'Sure!\n```json\n{"objective": "x", "attachmentIds": ["a"]}\n```'

        assert parse_json_object(text) == {"objective": "x", "attachmentIds": ["a"]}

    def test_bare_object_with_surrounding_text(self):
        assert parse_json_object('Result: {"a": 1} done') == {"a": 1}

    @pytest.mark.parametrize("text", ["", "no json here", "{not: valid}", "[1, 2]"])
    def test_unusable_output(self, text):
        assert parse_json_object(text) is None


class TestComposeState:
    @pytest.mark.asyncio
    async def test_recent_messages_are_chronological(self, store):
        for text in ["first", "second"]:
            await store.create_memory(Memory(user_id="bob", room_id="room-1", content=Content(text=text)))
        await store.create_memory(Memory(
            id="00000-abcde",
            user_id="bob",
            room_id="room-1",
            content=Content(text="see file", attachments=[Attachment(id="f1", title="Doc", url="http://x/doc")]),
        ))

        state = await compose_state(store, Memory(user_id="alice", room_id="room-1", content=Content(text="summarize")))

        assert state["roomId"] == "room-1"
        assert state["senderName"] == "alice"
        assert [m.content.text for m in state["recentMessagesData"]] == ["first", "second", "see file"]
        last_line = state["recentMessages"].split("\n")[-1]
        assert last_line == "[abcde] bob: see file (Attachments: [f1 - Doc (http://x/doc)])"

    def test_format_message_without_user(self):
        memory = Memory(id="xxxxx12345", content=Content(text="hello"))

        assert format_message(memory) == "[12345] unknown: hello"
