import json
import logging
from typing import Any, Dict, Optional
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import Action, HandlerCallback, send_reply
from broadcastbot.core.models import Memory, Content

logger = logging.getLogger(__name__)


class ServerApiAction(Action):
    """
    Forwards a request to the local REST server and stores the response.

    Options:
        endpoint: path under /api/ (default "customers")
        method: HTTP method (default "GET")
        body: JSON body, sent for POST/PUT/PATCH only
        token: bearer token forwarded as Authorization
    """

    name = "serverApiAction"
    similes = ["FETCH_SERVER_DATA", "GET_SERVER_DATA", "QUERY_SERVER"]
    description = "Fetch data from the local Node.js server"
    examples = [
        [
            {"user": "user1", "content": {"text": "Get customer data from server"}},
            {"user": "assistant", "content": {"text": "Fetching customer data from server", "action": "serverApiAction"}},
        ]
    ]

    def __init__(self, context: PluginContext):
        self.context = context

    async def handler(
        self,
        message: Memory,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None
    ) -> bool:
        options = options or {}
        try:
            logger.info("Starting data fetch from local server")
            data = await self.context.server.request(
                endpoint=options.get("endpoint") or "customers",
                method=options.get("method") or "GET",
                body=options.get("body"),
                token=options.get("token"),
            )

            await self.context.store.ensure_connection(message.user_id, message.room_id, "API User", "API User", "api")

            text = json.dumps(data)
            await self.context.store.create_memory(Memory(
                user_id=message.user_id,
                room_id=message.room_id,
                agent_id=self.context.agent_id,
                content=Content(text=text, raw=data),
                created_at=self.context.clock(),
            ))

            await send_reply(callback, text)
            return True

        except Exception as e:
            logger.error(f"Error in server data processing: {e}")
            await send_reply(callback, f"Error processing server data: {e}")
            return False
