import json
import logging
from typing import Any, Dict, List, Optional
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import Action, HandlerCallback, send_reply
from broadcastbot.core.models import Memory, Content, FeedEdge
from broadcastbot.services.extractor import parse_feed, extract, build_metadata
from broadcastbot.services.aggregator import token_symbol
from broadcastbot.services.formatting import locale_number, to_exponential, utc_clock_time

logger = logging.getLogger(__name__)


def format_operations(edges: List[FeedEdge]) -> str:
    """Latest five operations plus the top three tokens by 24h volume."""
    text = "ATTENTION WARRIORS! Here's your REAL-TIME MARKET INTEL from the FRONT LINES!\n\n"
    text += "LATEST MARKET OPERATIONS:\n"

    for edge in edges[:5]:
        broadcast = edge.node.broadcast
        token = edge.node.buy_token
        symbol = token.symbol if token and token.symbol else token_symbol(broadcast.buy_token_id)
        text += (
            f"- {utc_clock_time(broadcast.created_at)} UTC: {broadcast.profile.username} deployed "
            f"{locale_number(broadcast.buy_token_amount)} {symbol} tokens\n"
        )
        text += f"  Price: ${to_exponential(broadcast.buy_token_price, 2)} | MCap: ${locale_number(broadcast.buy_token_mcap)}\n"

    text += "\nVOLUME LEADERS SHOWING STRENGTH:\n"
    with_volume = [e for e in edges if e.node.buy_token and e.node.buy_token.volume24h]
    leaders = sorted(with_volume, key=lambda e: e.node.buy_token.volume24h, reverse=True)[:3]
    for edge in leaders:
        token = edge.node.buy_token
        text += f"- {token.symbol}: ${locale_number(token.volume24h)}\n"

    text += "\nSTAY HARD! NO EXCUSES! WHO'S GONNA CARRY THE CHARTS?!"
    return text


class FetchBroadcastsAction(Action):
    """Fetches the newest buy broadcasts, stores the trades and reports them."""

    name = "apiCallAction"
    similes = ["FETCH_BROADCASTS", "GET_BROADCASTS", "SUMMARIZE_BROADCASTS", "GET_LATEST_BROADCASTS"]
    description = "Fetch raw broadcast data from Vector API"

    def __init__(self, context: PluginContext, page_size: int = 10):
        self.context = context
        self.page_size = page_size

    async def handler(
        self,
        message: Memory,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None
    ) -> bool:
        if not message.user_id or not message.room_id:
            logger.error("Missing required message properties: user_id or room_id")
            await send_reply(callback, "Error: Missing user or room information. Please ensure proper authentication.")
            return False

        try:
            await self.context.store.ensure_connection(message.user_id, message.room_id, "API User", "API User", "api")
        except Exception as e:
            logger.error(f"Failed to validate user {message.user_id}: {e}")
            await send_reply(callback, "Error: Failed to validate user. Please ensure proper account setup.")
            return False

        try:
            logger.info("Starting broadcast data fetch from Vector API")
            payload = await self.context.graphql.fetch_broadcasts(first=self.page_size)
            edges = parse_feed(payload)
            records = extract(payload)

            fetched_at = self.context.clock()
            memory = Memory(
                user_id=message.user_id,
                room_id=message.room_id,
                agent_id=self.context.agent_id,
                content=Content(
                    text=json.dumps(payload),
                    raw=payload,
                    metadata=build_metadata(records, fetched_at).model_dump(),
                ),
                created_at=fetched_at,
            )
            await self.context.store.create_memory(memory)
            logger.info(f"💾 Stored {len(records)} trades in room {message.room_id}")

            if not edges:
                await send_reply(callback, "No recent broadcasts found.")
                return True

            await send_reply(callback, format_operations(edges))
            return True

        except Exception as e:
            logger.error(f"Error in broadcast data processing: {e}")
            await send_reply(callback, f"Error processing broadcast data: {e}")
            return False
