import uuid
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Set
from pydantic import BaseModel, ConfigDict, Field


def now_millis() -> int:
    return int(time.time() * 1000)


class ModelClass(str, Enum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"

class ReportKind(str, Enum):
    SUMMARY = "SUMMARY"
    TRADES = "TRADES"
    EMPTY = "EMPTY"
    ERROR = "ERROR"


# --- Trades ---

class TradeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    timestamp_millis: int
    token_id: str
    # Numeric fields keep the API value as-is; the aggregator converts them
    # when it does arithmetic on them
    amount: Any = None
    price: Any = None
    market_cap: Any = None

    def to_metadata(self) -> Dict[str, Any]:
        """Wire shape stored in memory metadata."""
        return {
            "username": self.username,
            "timestamp": self.timestamp_millis,
            "buyTokenId": self.token_id,
            "buyTokenAmount": self.amount,
            "buyTokenPrice": self.price,
            "buyTokenMCap": self.market_cap,
        }

class TradeFilter(BaseModel):
    username: Optional[str] = None
    since_millis: Optional[int] = None

@dataclass
class TokenAggregate:
    token_symbol: str
    total_amount: Decimal = Decimal(0)
    unique_traders: Set[str] = field(default_factory=set)
    latest_market_cap: Decimal = Decimal(0)
    trades: List[TradeRecord] = field(default_factory=list)

@dataclass
class Report:
    kind: ReportKind
    text: str
    tokens: List[TokenAggregate] = field(default_factory=list)


# --- Vector feed response (validated at the boundary) ---

class BroadcastProfile(BaseModel):
    id: Optional[str] = None
    username: str

class FeedBroadcast(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    buy_token_id: str = Field(alias="buyTokenId")
    # Numeric fields pass through untouched
    buy_token_amount: Any = Field(default=None, alias="buyTokenAmount")
    buy_token_price: Any = Field(default=None, alias="buyTokenPrice")
    buy_token_mcap: Any = Field(default=None, alias="buyTokenMCap")
    created_at: int = Field(alias="createdAt")
    profile: BroadcastProfile

class BuyToken(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None
    price: Optional[float] = None
    volume24h: Optional[float] = None

class FeedNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    broadcast: FeedBroadcast
    buy_token: Optional[BuyToken] = Field(default=None, alias="buyToken")

class FeedEdge(BaseModel):
    cursor: Optional[str] = None
    node: FeedNode

class PageInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    end_cursor: Optional[str] = Field(default=None, alias="endCursor")
    has_next_page: bool = Field(default=False, alias="hasNextPage")

class FeedConnection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    edges: List[FeedEdge]
    page_info: Optional[PageInfo] = Field(default=None, alias="pageInfo")

class FeedData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    feed_v3: FeedConnection = Field(alias="feedV3")

class FeedResponse(BaseModel):
    data: FeedData


# --- Profiles ---

class ProfileSummary(BaseModel):
    id: str
    username: Optional[str] = None
    twitter_username: Optional[str] = None
    follower_count: Optional[int] = None
    pnl24h: Optional[float] = None
    pnl1w: Optional[float] = None
    pnl1m: Optional[float] = None
    weekly_pnl_rank: Optional[int] = None
    weekly_pnl_value: Optional[float] = None
    best_ever_rank: Optional[int] = None
    best_ever_value: Optional[float] = None
    daily_metrics: Optional[Dict[str, Any]] = None
    weekly_metrics: Optional[Dict[str, Any]] = None
    subscriber_count: Optional[int] = None
    broadcast_count: Optional[int] = None


# --- Pre-computed broadcast analytics (fact evaluator input) ---

class AnalyzedBroadcast(BaseModel):
    broadcast_id: str
    created_at: int
    user_id: str
    user_username: str
    user_is_verified: bool = False
    user_follower_count: int = 0
    buy_token_id: str
    buy_token_amount: float
    buy_token_price_bcast: float
    buy_token_mcap_bcast: float = 0.0
    sell_token_id: Optional[str] = None
    sell_token_amount: Optional[float] = None
    sell_token_price_bcast: Optional[float] = None
    sell_token_mcap_bcast: Optional[float] = None

    @property
    def buy_volume(self) -> float:
        return self.buy_token_amount * self.buy_token_price_bcast

class BroadcastMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_broadcasts: int = Field(alias="totalBroadcasts")
    unique_tokens: int = Field(alias="uniqueTokens")
    unique_users: int = Field(alias="uniqueUsers")
    total_volume_24h: float = Field(alias="totalVolume24h")
    verified_user_percentage: float = Field(alias="verifiedUserPercentage")
    average_token_price: float = Field(alias="averageTokenPrice")

class BroadcastData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recent_broadcasts: List[AnalyzedBroadcast] = Field(alias="recentBroadcasts")
    metrics: BroadcastMetrics


# --- Host memory records ---

class Attachment(BaseModel):
    id: str
    url: Optional[str] = None
    title: str = ""
    source: Optional[str] = None
    description: Optional[str] = None
    text: str = ""
    content_type: Optional[str] = None

class Content(BaseModel):
    text: str = ""
    raw: Any = None
    metadata: Optional[Dict[str, Any]] = None
    source: Optional[str] = None
    action: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)
    broadcast_data: Optional[Dict[str, Any]] = None

class Memory(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None
    room_id: Optional[str] = None
    agent_id: Optional[str] = None
    content: Content = Field(default_factory=Content)
    created_at: int = Field(default_factory=now_millis)

class BroadcastMetadata(BaseModel):
    type: str = "broadcast_data"
    timestamp: int
    users: List[str]
    trades: List[Dict[str, Any]]
