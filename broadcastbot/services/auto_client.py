import asyncio
import logging
from typing import Callable, Optional, Set
from broadcastbot.core.interfaces import Action, MemoryStore
from broadcastbot.core.models import Memory, Content, now_millis

logger = logging.getLogger(__name__)


class AutoClient:
    """
    Runs the broadcast fetch-and-store cycle on a fixed interval.

    One fetch runs immediately on start. Each later tick starts a cycle in
    its own task; a tick that finds the previous cycle still running is
    skipped, so cycles never overlap.
    """

    def __init__(
        self,
        store: MemoryStore,
        fetch_action: Action,
        interval_seconds: float = 300,
        user_id: str = "auto-client",
        room_id: str = "auto-client-room",
        agent_id: Optional[str] = None,
        clock: Callable[[], int] = now_millis
    ):
        self.store = store
        self.fetch_action = fetch_action
        self.interval_seconds = interval_seconds
        self.user_id = user_id
        self.room_id = room_id
        self.agent_id = agent_id
        self.clock = clock

        self._running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._cycle_tasks: Set[asyncio.Task] = set()
        self._cycle_lock = asyncio.Lock()

        self.cycles_run = 0
        self.cycles_skipped = 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        try:
            await self.store.ensure_connection(self.user_id, self.room_id, "Auto Client", "Auto Client", "auto")
            logger.info("Auto client user setup complete")
        except Exception as e:
            logger.error(f"Failed to start auto client: {e}")
            raise

        self._running = True
        await self.run_cycle()
        self._loop_task = asyncio.create_task(self._poll_loop())
        logger.info(f"⏱️ Background polling started - fetching every {self.interval_seconds}s")

    async def stop(self):
        self._running = False
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
            logger.info("Background polling stopped")
        if self._cycle_tasks:
            await asyncio.gather(*self._cycle_tasks, return_exceptions=True)

    async def _poll_loop(self):
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            if not self._running:
                break
            task = asyncio.create_task(self.run_cycle())
            self._cycle_tasks.add(task)
            task.add_done_callback(self._cycle_tasks.discard)

    async def run_cycle(self) -> bool:
        """Run one fetch cycle. Returns False when skipped because one is in flight."""
        if self._cycle_lock.locked():
            self.cycles_skipped += 1
            logger.warning("⏭️ Previous broadcast fetch still running, skipping this tick")
            return False

        async with self._cycle_lock:
            await self.fetch_broadcasts()
            self.cycles_run += 1
            return True

    async def fetch_broadcasts(self):
        try:
            logger.info("Fetching broadcast data...")
            message = Memory(
                user_id=self.user_id,
                room_id=self.room_id,
                agent_id=self.agent_id,
                content=Content(text="Fetch broadcasts"),
                created_at=self.clock(),
            )
            state = {"roomId": self.room_id, "recentMessages": "", "recentMessagesData": []}
            await self.fetch_action.handler(message, state, {})
            logger.info("Broadcast data fetch complete")
        except Exception as e:
            logger.error(f"Failed to fetch broadcasts: {e}")
