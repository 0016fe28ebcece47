"""Tests for trade extraction from Vector feed payloads."""
import pytest

from broadcastbot.core.errors import MalformedResponseError, NumericConversionError
from broadcastbot.services.extractor import extract, trade_from_metadata, build_metadata

from conftest import make_edge, make_feed, make_trade


class TestExtract:
    """Test the feed -> TradeRecord mapping."""

    def test_maps_each_edge_in_order(self):
        payload = make_feed([
            make_edge(username="alice", amount="1500000", created_at=200),
            make_edge(username="bob", token_id="eth:PEPE", amount=42, price="0.5", mcap=1000, created_at=100),
        ])

        records = extract(payload)

        assert [r.username for r in records] == ["alice", "bob"]
        first = records[0]
        assert first.token_id == "solana:ABC-123"
        assert first.amount == "1500000"
        assert first.price == 0.0000123
        assert first.market_cap == 45000.5
        assert first.timestamp_millis == 200
        assert records[1].amount == 42

    def test_empty_feed_yields_no_records(self):
        assert extract(make_feed([])) == []

    def test_missing_feed_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            extract({"data": {}})

    def test_edge_without_profile_is_malformed(self):
        edge = make_edge()
        del edge["node"]["broadcast"]["profile"]

        with pytest.raises(MalformedResponseError):
            extract(make_feed([edge]))

    def test_numeric_fields_pass_through_unchecked(self):
        records = extract(make_feed([
            make_edge(username="alice"),
            make_edge(username="bob", amount="lots", price=None, mcap=None),
        ]))

        assert len(records) == 2
        assert records[1].amount == "lots"
        assert records[1].price is None
        assert records[1].market_cap is None

    def test_missing_numeric_keys_become_none(self):
        edge = make_edge()
        del edge["node"]["broadcast"]["buyTokenAmount"]
        del edge["node"]["broadcast"]["buyTokenPrice"]

        (record,) = extract(make_feed([edge]))

        assert record.amount is None
        assert record.price is None


class TestStoredTrades:
    """Test the memory metadata shape."""

    def test_metadata_round_trip(self):
        records = extract(make_feed([make_edge(username="alice"), make_edge(username="bob", mcap=None)]))

        metadata = build_metadata(records, fetched_at=123)

        assert metadata.type == "broadcast_data"
        assert metadata.timestamp == 123
        assert metadata.users == ["alice", "bob"]
        assert metadata.trades[0]["buyTokenAmount"] == "1500000"
        assert metadata.trades[1]["buyTokenMCap"] is None
        assert [trade_from_metadata(t) for t in metadata.trades] == records

    def test_stored_trade_keeps_raw_amount(self):
        record = trade_from_metadata(make_trade("alice", "x:ABC", amount="n/a"))

        assert record.amount == "n/a"

    def test_stored_trade_missing_keys(self):
        with pytest.raises(MalformedResponseError, match="buyTokenId"):
            trade_from_metadata({"username": "alice", "timestamp": 1})

    def test_stored_trade_with_bad_timestamp(self):
        trade = make_trade("alice", "x:ABC", amount="1")
        trade["timestamp"] = "yesterday"

        with pytest.raises(NumericConversionError, match="timestamp"):
            trade_from_metadata(trade)
