"""
Chat With Attachments Action

Summarises Discord attachments with the configured language model:
1. Asks the model which attachments the user means, and why
2. Collects those attachments from the room's recent messages
3. Summarises their text against the stated objective
4. Replies inline when short, or as a markdown attachment when long
"""

import logging
from typing import Any, Dict, List, Optional
from broadcastbot.core.context import PluginContext
from broadcastbot.core.interfaces import Action, HandlerCallback, send_reply
from broadcastbot.core.models import Memory, Content, Attachment, ModelClass
from broadcastbot.services.templates import compose_context, compose_state, parse_json_object, trim_tokens

logger = logging.getLogger(__name__)

SUMMARIZATION_TEMPLATE = """# Summarized so far (we are adding to this)
{{currentSummary}}

# Current attachments we are summarizing
{{attachmentsWithText}}

Summarization objective: {{objective}}

# Instructions: Summarize the attachments. Return the summary. Do not acknowledge this request, just summarize and continue the existing summary if there is one. Capture any important details based on the objective. Only respond with the new summary text."""

ATTACHMENT_IDS_TEMPLATE = """# Messages we are summarizing
{{recentMessages}}

# Instructions: {{senderName}} is requesting a summary of specific attachments. Your goal is to determine their objective, along with the list of attachment IDs to summarize.
The "objective" is a detailed description of what the user wants to summarize based on the conversation.
The "attachmentIds" is an array of attachment IDs that the user wants to summarize. If not specified, default to including all attachments from the conversation.

Your response must be formatted as a JSON block with this structure:
```json
{
  "objective": "<What the user wants to summarize>",
  "attachmentIds": ["<Attachment ID 1>", "<Attachment ID 2>", ...]
}
```
"""

KEYWORDS = [
    "attachment", "summary", "summarize", "research", "pdf", "video", "audio",
    "image", "document", "link", "file", "code", "report", "write", "details",
    "information", "talk", "chat", "read", "listen", "watch",
]

MAX_ID_ATTEMPTS = 5
TOKEN_PADDING = 500


def attachment_matches(attachment_id: str, requested_ids: List[str]) -> bool:
    """Case-insensitive match where either id may contain the other."""
    normalized = attachment_id.lower()
    for requested in requested_ids:
        if not requested:
            continue
        wanted = str(requested).lower()
        if wanted in normalized or normalized in wanted:
            return True
    return False


class ChatWithAttachmentsAction(Action):
    name = "CHAT_WITH_ATTACHMENTS"
    similes = [
        "CHAT_WITH_ATTACHMENT",
        "SUMMARIZE_FILES",
        "SUMMARIZE_FILE",
        "SUMMARIZE_ATACHMENT",
        "CHAT_WITH_PDF",
        "ATTACHMENT_SUMMARY",
        "RECAP_ATTACHMENTS",
        "SUMMARIZE_VIDEO",
        "SUMMARIZE_AUDIO",
        "SUMMARIZE_IMAGE",
        "SUMMARIZE_DOCUMENT",
        "SUMMARIZE_LINK",
        "FILE_SUMMARY",
    ]
    description = (
        "Answer a user request informed by specific attachments based on their IDs. If a user asks to chat "
        "with a PDF, or wants more specific information about a link or video or anything else they've "
        "attached, this is the action to use."
    )
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "Can you summarize the attachments b3e23, c4f67, and d5a89?"}},
            {"user": "{{user2}}", "content": {
                "text": "Sure thing! I'll pull up those specific attachments and provide a summary of their content.",
                "action": "CHAT_WITH_ATTACHMENTS",
            }},
        ],
        [
            {"user": "{{user1}}", "content": {"text": "I need a technical summary of the PDFs I sent earlier - a1b2c3.pdf, d4e5f6.pdf, and g7h8i9.pdf"}},
            {"user": "{{user2}}", "content": {
                "text": "I'll take a look at those specific PDF attachments and put together a technical summary for you.",
                "action": "CHAT_WITH_ATTACHMENTS",
            }},
        ],
    ]

    def __init__(self, context: PluginContext):
        self.context = context

    async def validate(self, message: Memory) -> bool:
        if message.content.source != "discord":
            return False
        text = message.content.text.lower()
        return any(keyword in text for keyword in KEYWORDS)

    async def get_attachment_ids(self, state: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Ask the model for {objective, attachmentIds}; up to five attempts."""
        context = compose_context(state, ATTACHMENT_IDS_TEMPLATE)
        for attempt in range(MAX_ID_ATTEMPTS):
            response = await self.context.text_generator.generate_text(context, ModelClass.SMALL)
            parsed = parse_json_object(response)
            if parsed and parsed.get("objective") and parsed.get("attachmentIds"):
                return parsed
            logger.debug(f"Attachment id response unusable (attempt {attempt + 1}/{MAX_ID_ATTEMPTS})")
        return None

    async def handler(
        self,
        message: Memory,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None
    ) -> Optional[Content]:
        generator = self.context.text_generator
        try:
            state = await compose_state(self.context.store, message)

            attachment_data = await self.get_attachment_ids(state)
            if not attachment_data:
                logger.error("Couldn't get attachment IDs from message")
                return None

            objective = attachment_data["objective"]
            attachment_ids = attachment_data["attachmentIds"]
            if isinstance(attachment_ids, str):
                attachment_ids = [attachment_ids]

            attachments: List[Attachment] = [
                attachment
                for msg in state["recentMessagesData"]
                for attachment in msg.content.attachments
                if attachment.id and attachment_matches(attachment.id, attachment_ids)
            ]
            logger.info(f"📎 Summarizing {len(attachments)} attachment(s)")

            state["attachmentsWithText"] = "\n\n".join(f"# {a.title}\n{a.text}" for a in attachments)
            state["objective"] = objective
            state["currentSummary"] = ""

            context = trim_tokens(
                compose_context(state, SUMMARIZATION_TEMPLATE),
                generator.max_output_tokens + TOKEN_PADDING,
                generator.model_name,
            )
            summary = await generator.generate_text(context, ModelClass.SMALL)

            current_summary = f"{state['currentSummary']}\n{summary}".strip()
            if not current_summary:
                logger.warning("Empty response from chat with attachments action, skipping")
                return None

            fields = {"action": "CHAT_WITH_ATTACHMENTS_RESPONSE", "source": message.content.source}
            if len(current_summary.split("\n")) < 4 or len(current_summary.split(" ")) < 100:
                return await send_reply(callback, f"Here is the summary:\n```md\n{current_summary}\n```\n", **fields)

            return await send_reply(
                callback,
                "Here's the summary of the requested attachments:",
                attachments=[Attachment(
                    id=f"summary_{self.context.clock()}",
                    url=None,
                    text=current_summary,
                    title="Summary",
                    content_type="text/markdown",
                )],
                **fields,
            )

        except Exception as e:
            logger.error(f"Error in chat with attachments: {e}")
            await send_reply(callback, f"Error summarizing attachments: {e}")
            return None
