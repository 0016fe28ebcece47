import logging
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from broadcastbot.core.interfaces import MemoryStore
from broadcastbot.core.models import Memory, Content
from broadcastbot.core.errors import ConnectionSetupError
from broadcastbot.db.database import build_engine, build_session_maker, init_db
from broadcastbot.db.schemas import MemoryRow, ConnectionRow

logger = logging.getLogger(__name__)


class SQLMemoryStore(MemoryStore):
    """Memory store persisted through SQLModel on an async SQLAlchemy engine."""

    def __init__(self, database_url: Optional[str] = None):
        self.engine = build_engine(database_url)
        self._session_maker = build_session_maker(self.engine)

    async def start(self):
        await init_db(self.engine)
        logger.info(f"🗄️ SQL memory store ready ({self.engine.url.render_as_string(hide_password=True)})")

    async def stop(self):
        await self.engine.dispose()

    async def create_memory(self, memory: Memory) -> None:
        row = MemoryRow(
            memory_id=memory.id,
            room_id=memory.room_id,
            user_id=memory.user_id,
            agent_id=memory.agent_id,
            content=memory.content.model_dump(mode="json"),
            created_at=memory.created_at,
        )
        async with self._session_maker() as session:
            session.add(row)
            await session.commit()
        logger.debug(f"🗄️ Stored memory {memory.id} in room {memory.room_id}")

    async def get_memories(self, room_id: str, count: int = 10) -> List[Memory]:
        if count <= 0:
            return []
        statement = (
            select(MemoryRow)
            .where(MemoryRow.room_id == room_id)
            .order_by(MemoryRow.seq.desc())
            .limit(count)
        )
        async with self._session_maker() as session:
            result = await session.execute(statement)
            rows = result.scalars().all()

        return [
            Memory(
                id=row.memory_id,
                user_id=row.user_id,
                room_id=row.room_id,
                agent_id=row.agent_id,
                content=Content.model_validate(row.content or {}),
                created_at=row.created_at,
            )
            for row in rows
        ]

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
        try:
            async with self._session_maker() as session:
                existing = await session.get(ConnectionRow, (user_id, room_id))
                if existing is None:
                    session.add(ConnectionRow(
                        user_id=user_id,
                        room_id=room_id,
                        display_name=display_name,
                        handle=handle,
                        source=source,
                    ))
                    await session.commit()
        except SQLAlchemyError as e:
            raise ConnectionSetupError(f"Failed to register {user_id} in {room_id}: {e}") from e
