import logging
from typing import List
from pydantic import ValidationError
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import Evaluator
from broadcastbot.core.models import Memory, BroadcastData, AnalyzedBroadcast
from broadcastbot.services.formatting import locale_number, to_fixed

logger = logging.getLogger(__name__)

NO_DATA = "No recent broadcast data available."
MIN_FOLLOWERS = 1000
TOP_BROADCASTS = 5


def important_broadcasts(broadcasts: List[AnalyzedBroadcast]) -> List[AnalyzedBroadcast]:
    """Verified users with more than 1000 followers, largest buy volume first."""
    selected = [b for b in broadcasts if b.user_is_verified and b.user_follower_count > MIN_FOLLOWERS]
    return sorted(selected, key=lambda b: b.buy_volume, reverse=True)


def render_analysis(data: BroadcastData) -> str:
    metrics = data.metrics
    text = (
        "Broadcast Data Analysis:\n"
        f"Total Broadcasts: {metrics.total_broadcasts}\n"
        f"Unique Tokens: {metrics.unique_tokens}\n"
        f"Unique Users: {metrics.unique_users}\n"
        f"24h Volume: ${locale_number(metrics.total_volume_24h)}\n"
        f"Verified User %: {to_fixed(metrics.verified_user_percentage * 100, 2)}%\n"
        f"Avg Token Price: ${to_fixed(metrics.average_token_price, 2)}\n"
        "\n"
        "Top Broadcasts:\n"
    )
    for index, broadcast in enumerate(important_broadcasts(data.recent_broadcasts)[:TOP_BROADCASTS], start=1):
        text += (
            f"\n{index}. {broadcast.user_username} ({broadcast.user_follower_count} followers)\n"
            f"   Buy Token: {broadcast.buy_token_id}\n"
            f"   Buy Amount: {locale_number(broadcast.buy_token_amount)}\n"
            f"   Buy Price: ${to_fixed(broadcast.buy_token_price_bcast, 8)}\n"
            f"   Buy Volume: ${locale_number(broadcast.buy_volume)}\n"
        )
    return text


def format_facts(facts: List[Memory]) -> str:
    return "\n".join(fact.content.text for fact in facts)


class BroadcastAnalysisEvaluator(Evaluator):
    """Analyses pre-computed broadcast metrics attached to a message."""

    name = "evaluateBroadcasts"
    similes = ["ANALYZE_BROADCASTS", "EVALUATE_BROADCASTS", "CHECK_BROADCASTS"]
    description = "Evaluates broadcast data and provides analysis"
    examples = [
        {
            "context": "User wants to analyze recent broadcasts",
            "messages": [{"user": "user", "content": {"text": "Analyze recent broadcasts", "action": "ANALYZE_BROADCASTS"}}],
            "outcome": "Analyzing recent broadcast data with metrics and top broadcasts",
        },
        {
            "context": "User wants to check broadcast metrics",
            "messages": [{"user": "user", "content": {"text": "Check broadcast metrics", "action": "EVALUATE_BROADCASTS"}}],
            "outcome": "Checking broadcast metrics including volume, users, and prices",
        },
    ]

    def __init__(self, context: PluginContext):
        self.context = context

    async def handler(self, message: Memory) -> str:
        raw = message.content.broadcast_data
        if not raw:
            return NO_DATA
        try:
            data = BroadcastData.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Unusable broadcast data on message {message.id}: {e.error_count()} error(s)")
            return NO_DATA
        return render_analysis(data)


class FactEvaluator(BroadcastAnalysisEvaluator):
    name = "factEvaluator"
    similes = ["ANALYZE_FACTS", "EVALUATE_FACTS", "CHECK_FACTS"]
    description = "Evaluates broadcast facts and provides analysis"
    examples = [
        {
            "context": "User wants to analyze broadcast facts",
            "messages": [{"user": "user", "content": {"text": "Analyze broadcast facts", "action": "ANALYZE_FACTS"}}],
            "outcome": "Analyzing broadcast facts and extracting key information",
        },
    ]
