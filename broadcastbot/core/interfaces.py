from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional
from .models import Memory, Content, ModelClass

# Host callback used by actions to reply to the user
HandlerCallback = Callable[[Content], Awaitable[Any]]


async def send_reply(callback: Optional[HandlerCallback], text: str, **fields) -> Optional[Content]:
    """Deliver a reply through the host callback, if there is one."""
    if callback is None:
        return None
    content = Content(text=text, **fields)
    await callback(content)
    return content


class MemoryStore(ABC):
    """Append log of memories per room, plus the host's connection bookkeeping."""

    @abstractmethod
    async def create_memory(self, memory: Memory) -> None:
        """Appends a memory to its room."""
        pass

    @abstractmethod
    async def get_memories(self, room_id: str, count: int = 10) -> List[Memory]:
        """
        Returns up to `count` memories of a room, newest insertion first.

        May return fewer than `count`, including none.
        """
        pass

    @abstractmethod
    async def ensure_connection(
        self,
        user_id: str,
        room_id: str,
        display_name: Optional[str] = None,
        handle: Optional[str] = None,
        source: Optional[str] = None
    ) -> None:
        """Registers the user as a participant of the room (idempotent)."""
        pass

    async def start(self):
        """Optional lifecycle hook (e.g. create tables)."""
        pass

    async def stop(self):
        """Optional lifecycle hook (e.g. dispose connections)."""
        pass


class TextGenerationProvider(ABC):
    """Abstract interface for language-model text generation."""

    max_output_tokens: int = 8192
    model_name: str = "gpt-4o-mini"

    @abstractmethod
    async def generate_text(self, context: str, model_class: ModelClass = ModelClass.SMALL) -> str:
        """
        Generate text for a fully rendered prompt.

        Args:
            context: The prompt, templates already composed
            model_class: Size class of the model to use

        Returns:
            The generated text (may be empty)
        """
        pass


class Action(ABC):
    """A side-effecting plugin component triggered by a matched intent."""

    name: str = ""
    similes: List[str] = []
    description: str = ""
    examples: List[Any] = []

    async def validate(self, message: Memory) -> bool:
        return True

    @abstractmethod
    async def handler(
        self,
        message: Memory,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None
    ) -> Any:
        pass


class Evaluator(ABC):
    """A plugin component that derives a text summary from stored memory state."""

    name: str = ""
    similes: List[str] = []
    description: str = ""
    examples: List[Any] = []

    async def validate(self, message: Memory) -> bool:
        return True

    @abstractmethod
    async def handler(self, message: Memory) -> str:
        pass
