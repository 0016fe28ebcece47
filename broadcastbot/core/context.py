from dataclasses import dataclass, field
from typing import Callable, Optional, TYPE_CHECKING
from broadcastbot.core.interfaces import MemoryStore, TextGenerationProvider
from broadcastbot.core.models import now_millis

if TYPE_CHECKING:
    from broadcastbot.adapters.vector_graphql import VectorGraphQLClient
    from broadcastbot.adapters.server_api import ServerApiClient


@dataclass
class PluginContext:
    """Capabilities handed to every action and evaluator at construction."""
    agent_id: str
    store: MemoryStore
    graphql: Optional["VectorGraphQLClient"] = None
    server: Optional["ServerApiClient"] = None
    text_generator: Optional[TextGenerationProvider] = None
    clock: Callable[[], int] = field(default=now_millis)
    report_timezone: str = "UTC"
