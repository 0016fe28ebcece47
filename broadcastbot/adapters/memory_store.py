import asyncio
import logging
from typing import Dict, List, Optional, Tuple
from broadcastbot.core.interfaces import MemoryStore
from broadcastbot.core.models import Memory
from broadcastbot.core.errors import ConnectionSetupError

logger = logging.getLogger(__name__)


class InMemoryMemoryStore(MemoryStore):
    """Process-local memory store used in dry runs and tests."""

    def __init__(self):
        self._rooms: Dict[str, List[Memory]] = {}
        self._connections: Dict[Tuple[str, str], Dict[str, Optional[str]]] = {}
        self._lock = asyncio.Lock()

    async def create_memory(self, memory: Memory) -> None:
        async with self._lock:
            self._rooms.setdefault(memory.room_id, []).append(memory.model_copy(deep=True))
        logger.debug(f"👻 Stored memory {memory.id} in room {memory.room_id}")

    async def get_memories(self, room_id: str, count: int = 10) -> List[Memory]:
        if count <= 0:
            return []
        async with self._lock:
            memories = self._rooms.get(room_id, [])
            return [m.model_copy(deep=True) for m in reversed(memories[-count:])]

    async def ensure_connection(
        self,
        user_id: str,
        room_id: str,
        display_name: Optional[str] = None,
        handle: Optional[str] = None,
        source: Optional[str] = None
    ) -> None:
        if not user_id or not room_id:
            raise ConnectionSetupError("user_id and room_id are required")
        async with self._lock:
            self._connections.setdefault((user_id, room_id), {
                "display_name": display_name,
                "handle": handle,
                "source": source,
            })

    def has_connection(self, user_id: str, room_id: str) -> bool:
        return (user_id, room_id) in self._connections
