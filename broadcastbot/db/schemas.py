from typing import Any, Dict, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

class MemoryRow(SQLModel, table=True):
    __tablename__: str = "memories"

    # Insertion sequence; newest-first reads order by this
    seq: Optional[int] = Field(default=None, primary_key=True)
    memory_id: str = Field(index=True, unique=True)
    room_id: Optional[str] = Field(default=None, index=True)
    user_id: Optional[str] = None
    agent_id: Optional[str] = None
    content: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: int

class ConnectionRow(SQLModel, table=True):
    __tablename__: str = "connections"

    user_id: str = Field(primary_key=True)
    room_id: str = Field(primary_key=True)
    display_name: Optional[str] = None
    handle: Optional[str] = None
    source: Optional[str] = None
