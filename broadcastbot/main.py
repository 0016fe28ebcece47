import asyncio
import logging
import sys
import httpx
from broadcastbot.config.settings import settings
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import MemoryStore, TextGenerationProvider
from broadcastbot.adapters.vector_graphql import VectorGraphQLClient
from broadcastbot.adapters.server_api import ServerApiClient
from broadcastbot.plugin import BroadcastPlugin, DiscordAttachmentsPlugin
from broadcastbot.services.auto_client import AutoClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("broadcastbot")


def build_store() -> MemoryStore:
    if settings.DRY_RUN:
        from broadcastbot.adapters.memory_store import InMemoryMemoryStore
        return InMemoryMemoryStore()
    from broadcastbot.adapters.sql_memory_store import SQLMemoryStore
    return SQLMemoryStore(settings.DATABASE_URL)


def build_text_generator(http_client: httpx.AsyncClient) -> TextGenerationProvider:
    if settings.GEMINI_API_KEY and settings.GEMINI_API_KEY.get_secret_value():
        from broadcastbot.adapters.gemini_generator import GeminiTextGenerator
        logger.info("   🤖 Text generation: Gemini")
        return GeminiTextGenerator(
            api_key=settings.GEMINI_API_KEY.get_secret_value(),
            model=settings.GEMINI_MODEL,
            max_output_tokens=settings.MAX_OUTPUT_TOKENS,
            http_client=http_client,
        )
    from broadcastbot.adapters.mock_generator import MockTextGenerator
    logger.info("   🤖 Text generation: MOCK (no API key)")
    return MockTextGenerator(max_output_tokens=settings.MAX_OUTPUT_TOKENS)


async def main():
    logger.info("🚀 Broadcastbot Starting Up...")
    logger.info(f"   Mode: {'DRY RUN (in-memory store)' if settings.DRY_RUN else 'LIVE (SQL store)'}")

    # 1. Dependency Injection: capabilities shared by every plugin component
    store = build_store()
    # One connection pool for every outbound API
    http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    context = PluginContext(
        agent_id=settings.AGENT_ID,
        store=store,
        graphql=VectorGraphQLClient(
            url=settings.VECTOR_GRAPHQL_URL,
            http_client=http_client,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            max_retries=settings.FETCH_MAX_RETRIES,
        ),
        server=ServerApiClient(settings.SERVER_URL, http_client=http_client, timeout=settings.HTTP_TIMEOUT_SECONDS),
        text_generator=build_text_generator(http_client),
        report_timezone=settings.REPORT_TIMEZONE,
    )

    # 2. Plugins
    broadcast_plugin = BroadcastPlugin(context, settings)
    discord_plugin = DiscordAttachmentsPlugin(context)
    logger.info(f"   🔌 Registered triggers: {len(broadcast_plugin.triggers) + len(discord_plugin.triggers)}")

    # 3. Scheduler
    auto_client = AutoClient(
        store=store,
        fetch_action=broadcast_plugin.fetch_broadcasts,
        interval_seconds=settings.FETCH_INTERVAL_SECONDS,
        user_id=settings.AUTO_CLIENT_USER_ID,
        room_id=settings.AUTO_CLIENT_ROOM_ID,
        agent_id=settings.AGENT_ID,
    )

    # 4. Run until interrupted
    try:
        await store.start()
        await auto_client.start()
        while auto_client.running:
            await asyncio.sleep(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("🛑 Shutdown signal received.")
    finally:
        await auto_client.stop()
        await http_client.aclose()
        await store.stop()
        logger.info("👋 Goodnight.")

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
