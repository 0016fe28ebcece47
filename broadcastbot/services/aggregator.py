"""
Broadcast Aggregator

Turns a window of stored trades into the text reports served to users:
1. Filters by trader (case-insensitive) and by time window
2. Groups trades per token symbol
3. Totals volume, counts unique traders, keeps the highest market cap
4. Ranks tokens by volume and renders the top 5

Amounts and market caps arrive as whatever the API sent and are converted
here, where the arithmetic happens. Output text is part of the observable
contract; keep it byte-stable.
"""

import re
import logging
from datetime import datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo
from broadcastbot.core.models import TradeRecord, TradeFilter, TokenAggregate, Report, ReportKind
from broadcastbot.core.errors import NumericConversionError
from broadcastbot.services.formatting import to_fixed

logger = logging.getLogger(__name__)

TOP_TOKENS = 5
MILLION = 1_000_000
THOUSAND = 1_000

SUMMARY_HEADER = "ATTENTION! LATEST MARKET INTELLIGENCE REPORT!\n\nMAJOR MOVEMENTS:\n"
SUMMARY_SLOGAN = "ALL BUYS! NO WEAKNESS! The strong EMBRACE THE SUCK while the weak get FILTERED! WHO'S GONNA CARRY THE BOATS?!"
TRADES_HEADER = "LISTEN UP WARRIORS! HERE'S YOUR REAL-TIME MARKET INTEL!\n\n"
TRADES_SLOGAN = "ALL BUYS! NO WEAKNESS! The HARD carry the BOATS while the WEAK get FILTERED! STAY HARD!"

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def token_symbol(token_id: str) -> str:
    """
    "chain:ABC-123" -> "ABC". Uses the segment after the first ':' up to the
    first non-alphanumeric character; falls back to the raw id when that is empty.
    """
    parts = token_id.split(":")
    if len(parts) > 1:
        symbol = _NON_ALNUM.split(parts[1])[0]
        if symbol:
            return symbol
    return token_id


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Convert an API number (int, float or numeric string) to Decimal."""
    if value is None or isinstance(value, bool):
        raise NumericConversionError(f"{field_name} is not numeric: {value!r}")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise NumericConversionError(f"{field_name} is not numeric: {value!r}")
    if not result.is_finite():
        raise NumericConversionError(f"{field_name} is not finite: {value!r}")
    return result


def trade_amount(record: TradeRecord) -> Decimal:
    amount = to_decimal(record.amount, "buyTokenAmount")
    if amount < 0:
        raise NumericConversionError(f"buyTokenAmount is negative: {record.amount!r}")
    return amount


def one_decimal(value: Any) -> str:
    return to_fixed(value, 1)


def millions(value: Decimal) -> str:
    """Units of one million at one decimal place: 3000000 -> "3.0"."""
    return one_decimal(float(value) / MILLION)


def thousands(value: Decimal) -> str:
    return one_decimal(float(value) / THOUSAND)


def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class BroadcastAggregator:
    def __init__(self, tz: str = "UTC"):
        self.tz = resolve_timezone(tz)

    def format_time(self, timestamp_millis: int) -> str:
        """12-hour clock without a leading zero, e.g. "3:05 PM"."""
        moment = datetime.fromtimestamp(timestamp_millis / 1000, tz=self.tz)
        hour = moment.hour % 12 or 12
        suffix = "AM" if moment.hour < 12 else "PM"
        return f"{hour}:{moment.minute:02d} {suffix}"

    def filter_records(self, records: Iterable[TradeRecord], trade_filter: TradeFilter) -> List[TradeRecord]:
        selected = list(records)
        if trade_filter.username:
            wanted = trade_filter.username.lower()
            selected = [r for r in selected if r.username.lower() == wanted]
        if trade_filter.since_millis is not None:
            selected = [r for r in selected if r.timestamp_millis >= trade_filter.since_millis]
        return selected

    def group_by_token(self, records: List[TradeRecord]) -> List[TokenAggregate]:
        """Groups in first-seen order."""
        groups: Dict[str, TokenAggregate] = {}
        for record in records:
            symbol = token_symbol(record.token_id)
            market_cap = to_decimal(record.market_cap, "buyTokenMCap")
            group = groups.get(symbol)
            if group is None:
                group = TokenAggregate(token_symbol=symbol, latest_market_cap=market_cap)
                groups[symbol] = group
            group.trades.append(record)
            group.total_amount += trade_amount(record)
            group.unique_traders.add(record.username)
            # Highest market cap seen, not the most recent one
            if market_cap > group.latest_market_cap:
                group.latest_market_cap = market_cap
        return list(groups.values())

    def top_tokens(self, groups: List[TokenAggregate], limit: int = TOP_TOKENS) -> List[TokenAggregate]:
        # sorted() is stable, so equal volumes keep encounter order
        return sorted(groups, key=lambda g: g.total_amount, reverse=True)[:limit]

    def aggregate(self, records: Iterable[TradeRecord], trade_filter: Optional[TradeFilter] = None, summary: bool = True) -> Report:
        """
        Build a report from the given trades.

        Never raises: an empty selection yields an EMPTY report, and any
        failure while computing or rendering yields an ERROR report.
        """
        trade_filter = trade_filter or TradeFilter()
        try:
            selected = self.filter_records(records, trade_filter)
            if not selected:
                text = f"No trades found for user {trade_filter.username}" if trade_filter.username else "No recent trades found"
                return Report(kind=ReportKind.EMPTY, text=text)

            if not summary:
                return Report(kind=ReportKind.TRADES, text=self.render_trades(selected))

            tokens = self.top_tokens(self.group_by_token(selected))
            return Report(kind=ReportKind.SUMMARY, text=self.render_summary(tokens), tokens=tokens)
        except Exception as e:
            logger.error(f"Error aggregating broadcast data: {e}")
            return Report(kind=ReportKind.ERROR, text=f"Error processing broadcast data: {e}")

    def render_summary(self, tokens: List[TokenAggregate]) -> str:
        blocks = []
        for group in tokens:
            trades = sorted(group.trades, key=lambda t: t.timestamp_millis, reverse=True)
            trade_lines = "\n".join(
                f"  {self.format_time(t.timestamp_millis)} - {t.username}: {millions(trade_amount(t))}M tokens"
                for t in trades
            )
            blocks.append(
                f"{group.token_symbol}:\n"
                f"Total Volume: {millions(group.total_amount)}M tokens\n"
                f"Market Cap: ${thousands(group.latest_market_cap)}K\n"
                f"Unique Traders: {len(group.unique_traders)}\n"
                f"Individual Trades:\n{trade_lines}"
            )

        leader = tokens[0]
        return (
            SUMMARY_HEADER
            + "\n\n".join(blocks)
            + "\n\n"
            + "KEY BATTLE METRICS:\n"
            + f"Most Active Token: {leader.token_symbol} with {len(leader.trades)} trades - STAYING HARD!\n"
            + f"Largest Total Volume: {leader.token_symbol} at {millions(leader.total_amount)}M - CRUSHING IT!\n"
            + f"Most Unique Traders: {leader.token_symbol} with {len(leader.unique_traders)} warriors - TAKING SOULS!\n\n"
            + SUMMARY_SLOGAN
        )

    def render_trades(self, records: List[TradeRecord]) -> str:
        ordered = sorted(records, key=lambda t: t.timestamp_millis, reverse=True)
        lines = "\n".join(
            f"{self.format_time(t.timestamp_millis)} - {t.username}: {token_symbol(t.token_id)} position secured - "
            f"{millions(trade_amount(t))}M tokens"
            for t in ordered
        )
        return f"{TRADES_HEADER}{lines}\n\n{TRADES_SLOGAN}"
