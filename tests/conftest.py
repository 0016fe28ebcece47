"""Shared test fixtures for broadcastbot tests."""
import json
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from broadcastbot.adapters.memory_store import InMemoryMemoryStore
from broadcastbot.core.context import PluginContext
from broadcastbot.core.models import Memory, Content


NOW_MS = 1_700_000_000_000  # 2023-11-14 22:13:20 UTC


# =============================================================================
# Payload builders
# =============================================================================

def make_edge(
    username: str = "alice",
    token_id: str = "solana:ABC-123",
    amount: Any = "1500000",
    price: Any = 0.0000123,
    mcap: Any = 45000.5,
    created_at: int = NOW_MS,
    symbol: Optional[str] = "ABC",
    volume24h: Optional[float] = None,
) -> Dict[str, Any]:
    """Create one feedV3 edge as returned by the Vector API."""
    node: Dict[str, Any] = {
        "broadcast": {
            "id": f"b-{username}-{created_at}",
            "buyTokenId": token_id,
            "buyTokenAmount": amount,
            "buyTokenPrice": price,
            "buyTokenMCap": mcap,
            "createdAt": created_at,
            "profile": {"id": f"p-{username}", "username": username},
        },
        "buyToken": None,
    }
    if symbol is not None:
        node["buyToken"] = {"id": token_id, "name": symbol.title(), "symbol": symbol, "price": 0.1, "volume24h": volume24h}
    return {"cursor": f"c-{username}", "node": node}


def make_feed(edges: List[Dict[str, Any]], has_next_page: bool = False, end_cursor: Optional[str] = None) -> Dict[str, Any]:
    return {"data": {"feedV3": {"edges": edges, "pageInfo": {"endCursor": end_cursor, "hasNextPage": has_next_page}}}}


def make_trade_memory(trades: List[Dict[str, Any]], room_id: str = "room-1", created_at: int = NOW_MS) -> Memory:
    """Create a stored broadcast memory holding trade metadata."""
    return Memory(
        user_id="auto-client",
        room_id=room_id,
        agent_id="agent",
        content=Content(
            text="{}",
            metadata={
                "type": "broadcast_data",
                "timestamp": created_at,
                "users": [t["username"] for t in trades],
                "trades": trades,
            },
        ),
        created_at=created_at,
    )


def make_trade(username: str, token_id: str, amount: Any, mcap: Any = 1000, timestamp: int = NOW_MS, price: Any = "0.001") -> Dict[str, Any]:
    return {
        "username": username,
        "timestamp": timestamp,
        "buyTokenId": token_id,
        "buyTokenAmount": amount,
        "buyTokenPrice": price,
        "buyTokenMCap": mcap,
    }


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """httpx client whose requests are answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def request_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def store():
    return InMemoryMemoryStore()


@pytest.fixture
def clock():
    return MagicMock(return_value=NOW_MS)


@pytest.fixture
def context(store, clock):
    """Plugin context with mocked network capabilities."""
    graphql = MagicMock()
    graphql.fetch_broadcasts = AsyncMock()
    graphql.fetch_profiles = AsyncMock()
    server = MagicMock()
    server.request = AsyncMock()
    return PluginContext(
        agent_id="agent",
        store=store,
        graphql=graphql,
        server=server,
        text_generator=None,
        clock=clock,
        report_timezone="UTC",
    )


@pytest.fixture
def callback():
    return AsyncMock()


@pytest.fixture
def user_message():
    return Memory(user_id="user-1", room_id="room-1", content=Content(text="Fetch broadcasts"))
