"""
Vector GraphQL Adapter

Talks to the Vector trading-social GraphQL API:
- single-page feed queries for the latest buy broadcasts
- cursor pagination (`fetch_all`) for connections such as `searchProfiles`

Transport failures are retried with exponential backoff. A page that still
fails aborts the whole fetch; nodes collected so far ride along on the
raised TransportError but are never returned.
"""

import asyncio
import logging
import httpx
from typing import Any, Dict, List, Optional
from broadcastbot.core.errors import TransportError, MalformedResponseError

logger = logging.getLogger(__name__)

VECTOR_GRAPHQL_URL = "https://mainnet-api.vector.fun/graphql"

FEED_QUERY = (
    "query FeedListsQuery($mode: FeedMode!, $sortOrder: FeedSortOrder!, $filters: FeedFilters, "
    "$after: String, $first: Int) { feedV3(mode: $mode, sortOrder: $sortOrder, filters: $filters, "
    "after: $after, first: $first) { edges { cursor node { broadcast { id buyTokenId buyTokenAmount "
    "buyTokenPrice: buyTokenPriceV2 buyTokenMCap: buyTokenMCapV2 createdAt profile { id username } } "
    "buyToken { id name symbol price volume24h } } } pageInfo { endCursor hasNextPage } } }"
)

FEED_VARIABLES = {
    "mode": "ForYou",
    "sortOrder": "Newest",
    "filters": {"direction": "Buy"},
}

PROFILES_QUERY = """query FetchAllProfiles($query: String!, $profileSortBy: String, $first: Int, $after: String, $yourProfileId: String!) {
    searchProfiles(query: $query, sortBy: $profileSortBy, first: $first, after: $after) {
        edges {
            node {
                id
                username
                twitterUsername
                followerCount
                pnl24h
                pnl1w
                pnl1m
                weeklyLeaderboardStandingPrev1 { rank value }
                bestEverStanding { rank value leaderboardDate }
                profileLeaderboardValues {
                    daily { pnl volume maxTradeSize }
                    weekly { pnl volume maxTradeSize }
                }
                subscriberCountV2
                broadcastCount
            }
            cursor
        }
        pageInfo { endCursor hasNextPage }
    }
}"""

# Status codes worth another attempt; anything else >= 400 fails at once
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class VectorGraphQLClient:
    def __init__(
        self,
        url: str = VECTOR_GRAPHQL_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
        max_retries: int = 3,
        retry_delay: float = 1.0
    ):
        self.url = url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._http_client = http_client

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._http_client is not None:
            return await self._http_client.post(self.url, json=body, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=body, headers=headers)

    async def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run one GraphQL request and return the decoded payload.

        Raises:
            TransportError: network failure or HTTP error after all retries
            MalformedResponseError: non-JSON body, GraphQL errors, or no `data`
        """
        body = {"query": query, "variables": variables}

        for attempt in range(self.max_retries):
            try:
                response = await self._post(body)
            except httpx.HTTPError as e:
                reason = f"{type(e).__name__}: {e}"
            else:
                if response.status_code < 400:
                    break
                reason = f"HTTP {response.status_code}"
                if response.status_code not in RETRYABLE_STATUS:
                    raise TransportError(f"Vector API request failed: {reason}")

            if attempt < self.max_retries - 1:
                delay = self.retry_delay * (2 ** attempt)
                logger.warning(f"🌐 Vector API {reason}, retrying in {delay}s (attempt {attempt + 1}/{self.max_retries})")
                await asyncio.sleep(delay)
                continue
            logger.error(f"Vector API request failed after {self.max_retries} attempts: {reason}")
            raise TransportError(f"Vector API request failed: {reason}")

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Vector API returned non-JSON body: {e}")

        if not isinstance(payload, dict):
            raise MalformedResponseError("Vector API returned a non-object payload")
        if payload.get("errors"):
            messages = "; ".join(str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in payload["errors"])
            raise MalformedResponseError(f"GraphQL errors: {messages}")
        if not isinstance(payload.get("data"), dict):
            raise MalformedResponseError("Vector API response has no data object")

        return payload

    async def fetch_broadcasts(self, first: int = 10, after: Optional[str] = None) -> Dict[str, Any]:
        """Fetch one page of the newest buy broadcasts (raw payload)."""
        logger.info(f"📡 Fetching {first} broadcasts from Vector API")
        variables = {**FEED_VARIABLES, "after": after, "first": first}
        payload = await self.execute(FEED_QUERY, variables)
        logger.debug("Received response from Vector API")
        return payload

    async def fetch_all(
        self,
        query: str,
        variables: Dict[str, Any],
        connection: str,
        page_size: int
    ) -> List[Dict[str, Any]]:
        """
        Follow `pageInfo` cursors until `hasNextPage` is falsy.

        Returns every node of `data.<connection>.edges`, in page order.
        """
        nodes: List[Dict[str, Any]] = []
        after: Optional[str] = None
        page = 0

        while True:
            page += 1
            page_variables = {**variables, "after": after, "first": page_size}
            try:
                payload = await self.execute(query, page_variables)
            except TransportError as e:
                raise TransportError(f"Page {page} of {connection} failed: {e}", partial_results=nodes) from e

            conn = payload["data"].get(connection)
            if not isinstance(conn, dict) or not isinstance(conn.get("edges"), list):
                raise MalformedResponseError(f"Response is missing data.{connection}.edges")

            for edge in conn["edges"]:
                if not isinstance(edge, dict) or "node" not in edge:
                    raise MalformedResponseError(f"Edge without node in {connection}")
                nodes.append(edge["node"])

            page_info = conn.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break

            next_cursor = page_info.get("endCursor")
            if not next_cursor or next_cursor == after:
                raise MalformedResponseError(f"{connection} reports more pages but no new cursor")
            after = next_cursor

        logger.info(f"📚 Fetched {len(nodes)} {connection} nodes over {page} page(s)")
        return nodes

    async def fetch_profiles(self, viewer_id: str, page_size: int = 250) -> List[Dict[str, Any]]:
        variables = {
            "query": "*",
            "profileSortBy": "followerCount:desc,followeeCount:asc",
            "yourProfileId": viewer_id,
        }
        return await self.fetch_all(PROFILES_QUERY, variables, "searchProfiles", page_size)

    async def aclose(self):
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
