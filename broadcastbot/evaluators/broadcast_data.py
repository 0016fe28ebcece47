import re
import logging
from typing import List, Tuple
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import Evaluator
from broadcastbot.core.models import Memory, Report, ReportKind, TradeFilter, TradeRecord
from broadcastbot.services.aggregator import BroadcastAggregator
from broadcastbot.services.extractor import trade_from_metadata

logger = logging.getLogger(__name__)

USER_PATTERN = re.compile(r"trades by @?(\w+)", re.IGNORECASE)
MEMORY_WINDOW = 20
ONE_HOUR_MS = 60 * 60 * 1000


def parse_query(text: str, now_millis: int) -> Tuple[TradeFilter, bool]:
    """
    Derive the trade filter and report style from a user message.

    "trades by @alice" filters on alice; "recent", "last hour", "summary" and
    "summarize" restrict to the last hour; the latter two ask for a summary.
    """
    lowered = text.lower()
    match = USER_PATTERN.search(text)
    is_recent = "recent" in lowered or "last hour" in lowered
    is_summary = "summarize" in lowered or "summary" in lowered

    trade_filter = TradeFilter(
        username=match.group(1) if match else None,
        since_millis=now_millis - ONE_HOUR_MS if (is_recent or is_summary) else None,
    )
    return trade_filter, is_summary


def trades_from_memories(memories: List[Memory]) -> List[TradeRecord]:
    records = []
    for memory in memories:
        metadata = memory.content.metadata or {}
        if metadata.get("type") != "broadcast_data":
            continue
        records.extend(trade_from_metadata(trade) for trade in metadata.get("trades") or [])
    return records


class BroadcastDataEvaluator(Evaluator):
    name = "PROVIDE_BROADCAST_DATA"
    similes = ["GET_BROADCAST_DATA", "FETCH_BROADCAST_DATA", "GET_USER_TRADES", "GET_RECENT_TRADES"]
    description = "Evaluates broadcast data from memory with filtering capabilities"
    examples = [
        {
            "context": "When checking broadcast data",
            "messages": [{"user": "user1", "content": {"text": "What's the latest broadcast data?"}}],
            "outcome": "Evaluator returns formatted broadcast data",
        }
    ]

    def __init__(self, context: PluginContext, aggregator: BroadcastAggregator = None):
        self.context = context
        self.aggregator = aggregator or BroadcastAggregator(tz=context.report_timezone)

    async def build_report(self, message: Memory) -> Report:
        try:
            trade_filter, is_summary = parse_query(message.content.text, self.context.clock())
            memories = await self.context.store.get_memories(message.room_id, MEMORY_WINDOW)
            records = trades_from_memories(memories)
        except Exception as e:
            logger.error(f"Error in broadcast data evaluator: {e}")
            return Report(kind=ReportKind.ERROR, text=f"Error processing broadcast data: {e}")

        logger.info(f"📊 Aggregating {len(records)} stored trades (user={trade_filter.username}, summary={is_summary})")
        return self.aggregator.aggregate(records, trade_filter, summary=is_summary)

    async def handler(self, message: Memory) -> str:
        report = await self.build_report(message)
        return report.text
