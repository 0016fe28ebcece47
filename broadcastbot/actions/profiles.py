import logging
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import Action, HandlerCallback, send_reply
from broadcastbot.core.models import Memory, Content, ProfileSummary
from broadcastbot.core.errors import MalformedResponseError

logger = logging.getLogger(__name__)


def profile_from_node(node: Dict[str, Any]) -> ProfileSummary:
    """Flatten one `searchProfiles` node."""
    weekly_standing = node.get("weeklyLeaderboardStandingPrev1") or {}
    best_ever = node.get("bestEverStanding") or {}
    leaderboard = node.get("profileLeaderboardValues") or {}
    try:
        return ProfileSummary(
            id=node.get("id"),
            username=node.get("username"),
            twitter_username=node.get("twitterUsername"),
            follower_count=node.get("followerCount"),
            pnl24h=node.get("pnl24h"),
            pnl1w=node.get("pnl1w"),
            pnl1m=node.get("pnl1m"),
            weekly_pnl_rank=weekly_standing.get("rank"),
            weekly_pnl_value=weekly_standing.get("value"),
            best_ever_rank=best_ever.get("rank"),
            best_ever_value=best_ever.get("value"),
            daily_metrics=leaderboard.get("daily"),
            weekly_metrics=leaderboard.get("weekly"),
            subscriber_count=node.get("subscriberCountV2"),
            broadcast_count=node.get("broadcastCount"),
        )
    except ValidationError as e:
        raise MalformedResponseError(f"Unexpected profile shape: {e.errors()[0]['msg']}") from e


class FetchProfilesAction(Action):
    name = "fetchProfilesAction"
    similes = ["FETCH_PROFILES", "GET_PROFILES", "LIST_PROFILES"]
    description = "Fetch Vector profiles data and store in memory"

    def __init__(self, context: PluginContext, viewer_id: str, page_size: int = 250):
        self.context = context
        self.viewer_id = viewer_id
        self.page_size = page_size

    async def handler(
        self,
        message: Memory,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None
    ) -> bool:
        try:
            logger.info("Starting profile data fetch from Vector API")
            nodes = await self.context.graphql.fetch_profiles(self.viewer_id, page_size=self.page_size)
            profiles: List[ProfileSummary] = [profile_from_node(node) for node in nodes]

            await self.context.store.ensure_connection(message.user_id, message.room_id, "API User", "API User", "api")

            await self.context.store.create_memory(Memory(
                user_id=message.user_id,
                room_id=message.room_id,
                agent_id=self.context.agent_id,
                content=Content(
                    text=f"Fetched {len(profiles)} profiles",
                    raw=[p.model_dump() for p in profiles],
                ),
                created_at=self.context.clock(),
            ))

            await send_reply(
                callback,
                f"Successfully fetched {len(profiles)} profiles from Vector. The data has been stored for processing."
            )
            return True

        except Exception as e:
            logger.error(f"Error in profile data processing: {e}")
            await send_reply(callback, f"Error processing profile data: {e}")
            return False
