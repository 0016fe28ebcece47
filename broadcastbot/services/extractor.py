"""
Trade Extractor

Maps raw Vector feed payloads into flat TradeRecords and back from the
stored metadata shape. Pure functions, no I/O.

Amount, price and market cap are carried through untouched, whatever the
API sent; only the aggregator's arithmetic decides whether they are numbers.
"""

import logging
from typing import Any, Dict, List
from pydantic import ValidationError
from broadcastbot.core.models import TradeRecord, FeedResponse, FeedEdge, BroadcastMetadata
from broadcastbot.core.errors import MalformedResponseError, NumericConversionError

logger = logging.getLogger(__name__)


def _build_record(username: Any, timestamp: Any, token_id: Any, amount: Any, price: Any, market_cap: Any) -> TradeRecord:
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float, str)):
        raise NumericConversionError(f"timestamp is not numeric: {timestamp!r}")
    try:
        timestamp_millis = int(timestamp)
    except ValueError:
        raise NumericConversionError(f"timestamp is not numeric: {timestamp!r}")
    return TradeRecord(
        username=str(username),
        timestamp_millis=timestamp_millis,
        token_id=str(token_id),
        amount=amount,
        price=price,
        market_cap=market_cap,
    )


def parse_feed(raw_api_response: Any) -> List[FeedEdge]:
    """Validate the `data.feedV3.edges` envelope and return the typed edges."""
    try:
        return FeedResponse.model_validate(raw_api_response).data.feed_v3.edges
    except ValidationError as e:
        raise MalformedResponseError(f"Unexpected feed shape: {e.error_count()} validation error(s): {e.errors()[0]['msg']}") from e


def extract(raw_api_response: Any) -> List[TradeRecord]:
    """
    Extract one TradeRecord per feed edge, in feed order.

    Raises:
        MalformedResponseError: the envelope or an edge has the wrong shape
    """
    records = []
    for edge in parse_feed(raw_api_response):
        b = edge.node.broadcast
        records.append(_build_record(
            b.profile.username,
            b.created_at,
            b.buy_token_id,
            b.buy_token_amount,
            b.buy_token_price,
            b.buy_token_mcap,
        ))
    return records


def trade_from_metadata(trade: Dict[str, Any]) -> TradeRecord:
    """Rebuild a TradeRecord from the metadata shape written by `build_metadata`."""
    if not isinstance(trade, dict):
        raise MalformedResponseError(f"Stored trade is not an object: {trade!r}")
    missing = [k for k in ("username", "timestamp", "buyTokenId") if k not in trade]
    if missing:
        raise MalformedResponseError(f"Stored trade is missing {', '.join(missing)}")
    return _build_record(
        trade["username"],
        trade["timestamp"],
        trade["buyTokenId"],
        trade.get("buyTokenAmount"),
        trade.get("buyTokenPrice"),
        trade.get("buyTokenMCap"),
    )


def build_metadata(records: List[TradeRecord], fetched_at: int) -> BroadcastMetadata:
    return BroadcastMetadata(
        timestamp=fetched_at,
        users=[r.username for r in records],
        trades=[r.to_metadata() for r in records],
    )
