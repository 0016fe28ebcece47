import json
import re
import logging
from typing import Any, Dict, List, Optional
import tiktoken
from broadcastbot.core.interfaces import MemoryStore
from broadcastbot.core.models import Memory

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")
_JSON_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def compose_context(state: Dict[str, Any], template: str) -> str:
    """Fill `{{key}}` placeholders from state; unknown keys render empty."""
    def _fill(match: re.Match) -> str:
        value = state.get(match.group(1))
        return "" if value is None else str(value)
    return _PLACEHOLDER.sub(_fill, template)


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Extract a JSON object from model output (fenced block or bare object)."""
    if not text:
        return None
    block = _JSON_BLOCK.search(text)
    candidate = block.group(1) if block else text
    start, end = candidate.find("{"), candidate.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        parsed = json.loads(candidate[start:end + 1])
    except json.JSONDecodeError:
        logger.debug(f"Could not parse JSON from model output: {text[:200]}")
        return None
    return parsed if isinstance(parsed, dict) else None


def _encoding_for(model: str):
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding("cl100k_base")


def trim_tokens(text: str, max_tokens: int, model: str = "gpt-4o-mini") -> str:
    """Keep the last `max_tokens` tokens of `text`."""
    if max_tokens <= 0:
        return ""
    encoding = _encoding_for(model)
    tokens = encoding.encode(text)
    if len(tokens) <= max_tokens:
        return text
    return encoding.decode(tokens[-max_tokens:])


def format_message(memory: Memory) -> str:
    line = f"[{memory.id[-5:]}] {memory.user_id or 'unknown'}: {memory.content.text}"
    if memory.content.attachments:
        listed = ", ".join(f"{a.id} - {a.title} ({a.url})" for a in memory.content.attachments)
        line += f" (Attachments: [{listed}])"
    return line


async def compose_state(store: MemoryStore, message: Memory, count: int = 32) -> Dict[str, Any]:
    """Build the prompt state for a message from its room's recent history."""
    recent: List[Memory] = await store.get_memories(message.room_id, count)
    chronological = list(reversed(recent))
    return {
        "roomId": message.room_id,
        "senderName": message.user_id or "user",
        "recentMessagesData": chronological,
        "recentMessages": "\n".join(format_message(m) for m in chronological),
    }
