import logging
from typing import Any, Dict, List, Optional, Union
from broadcastbot.config.settings import Settings, settings as default_settings
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import Action, Evaluator, HandlerCallback
from broadcastbot.core.models import Memory
from broadcastbot.actions.broadcasts import FetchBroadcastsAction
from broadcastbot.actions.profiles import FetchProfilesAction
from broadcastbot.actions.server_api import ServerApiAction
from broadcastbot.actions.chat_with_attachments import ChatWithAttachmentsAction
from broadcastbot.evaluators.broadcast_data import BroadcastDataEvaluator
from broadcastbot.evaluators.facts import BroadcastAnalysisEvaluator, FactEvaluator

logger = logging.getLogger(__name__)

Component = Union[Action, Evaluator]


class Plugin:
    """Named set of actions and evaluators with a name/simile lookup table."""

    name: str = ""
    description: str = ""

    def __init__(self, actions: List[Action], evaluators: List[Evaluator]):
        self.actions = actions
        self.evaluators = evaluators
        self._rules: Dict[str, Component] = {}
        for component in [*actions, *evaluators]:
            for trigger in [component.name, *component.similes]:
                key = trigger.strip().upper()
                if key in self._rules:
                    logger.warning(f"Trigger {key} already maps to {self._rules[key].name}, ignoring {component.name}")
                    continue
                self._rules[key] = component

    def resolve(self, trigger: str) -> Optional[Component]:
        """Look up a component by its name or one of its similes (case-insensitive)."""
        return self._rules.get(trigger.strip().upper())

    @property
    def triggers(self) -> List[str]:
        return sorted(self._rules)

    async def dispatch(
        self,
        trigger: str,
        message: Memory,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None
    ) -> Any:
        """Resolve, validate and run a component. Returns None when nothing ran."""
        component = self.resolve(trigger)
        if component is None:
            logger.info(f"No component registered for {trigger}")
            return None
        if not await component.validate(message):
            logger.info(f"{component.name} declined message {message.id}")
            return None
        if isinstance(component, Evaluator):
            return await component.handler(message)
        return await component.handler(message, state, options, callback)


class BroadcastPlugin(Plugin):
    name = "broadcast"
    description = "Broadcast data plugin"

    def __init__(self, context: PluginContext, config: Settings = default_settings):
        self.fetch_broadcasts = FetchBroadcastsAction(context, page_size=config.BROADCAST_PAGE_SIZE)
        super().__init__(
            actions=[
                self.fetch_broadcasts,
                ServerApiAction(context),
                FetchProfilesAction(context, viewer_id=config.PROFILE_VIEWER_ID, page_size=config.PROFILE_PAGE_SIZE),
            ],
            evaluators=[
                BroadcastAnalysisEvaluator(context),
                BroadcastDataEvaluator(context),
                FactEvaluator(context),
            ],
        )


class DiscordAttachmentsPlugin(Plugin):
    name = "discord-attachments"
    description = "Summarize Discord attachments with the language model"

    def __init__(self, context: PluginContext):
        super().__init__(actions=[ChatWithAttachmentsAction(context)], evaluators=[])
