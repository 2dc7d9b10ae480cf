"""Bot Framework activity handler for the proactive relay.

Counts and echoes messages per conversation, and captures a conversation
reference whenever a user joins so the conversation can be re-entered later
through the proactive trigger endpoint.
"""

from __future__ import annotations

from botbuilder.core import ActivityHandler, TurnContext
from botbuilder.schema import ChannelAccount

from adapters.botframework.trigger_client import TriggerClient
from config.logging import get_logger
from relay_core.models import CounterState, ProactiveRequest, capture_reference
from relay_core.storage import (
    CONVERSATION_REFERENCE,
    COUNTER_STATE,
    ConversationScope,
    ConversationStore,
)

logger = get_logger("adapters.botframework.bot")

PROACTIVE_NOTICE = "Proactive message incoming..."


class ProactiveBot(ActivityHandler):
    """Echo bot that can be woken up later by a proactive trigger.

    A new instance is not required per turn; the bot keeps no state of its
    own between turns. Everything persistent goes through the store.
    """

    def __init__(
        self,
        store: ConversationStore,
        trigger_client: TriggerClient,
        trigger_word: str = "proactive",
        demo_message: str = "Hello",
    ) -> None:
        """Initialize the bot.

        Args:
            store: Per-conversation state store
            trigger_client: Client used to POST demo proactive requests
            trigger_word: Case-insensitive message prefix that fires the demo
            demo_message: Text delivered by the demo proactive request
        """
        super().__init__()
        self.store = store
        self.trigger_client = trigger_client
        self.trigger_word = trigger_word.lower()
        self.demo_message = demo_message

    async def on_message_activity(self, turn_context: TurnContext) -> None:
        """Handle incoming message activity.

        Args:
            turn_context: Bot Framework turn context
        """
        activity = turn_context.activity
        conversation_id = activity.conversation.id
        scope = self.store.scope(conversation_id)

        logger.info(
            f"Message: {activity.text[:50] if activity.text else '[no text]'}",
            extra={"conversation_id": conversation_id, "channel_id": activity.channel_id},
        )

        if self._is_trigger(activity.text):
            await self._send_proactive_trigger(turn_context, scope)

        state = await scope.get(COUNTER_STATE, CounterState)
        state.turn_count += 1
        await scope.set(COUNTER_STATE, state)
        await scope.commit()

        await turn_context.send_activity(f"Turn {state.turn_count}: You sent '{activity.text or ''}'\n")

    async def on_members_added_activity(
        self,
        members_added: list[ChannelAccount],
        turn_context: TurnContext,
    ) -> None:
        """Capture a conversation reference when someone other than the bot joins.

        Args:
            members_added: List of new members
            turn_context: Bot Framework turn context
        """
        activity = turn_context.activity
        bot_id = activity.recipient.id if activity.recipient else None

        if not any(member.id != bot_id for member in members_added or []):
            return

        conversation_id = activity.conversation.id
        scope = self.store.scope(conversation_id)
        await scope.set(CONVERSATION_REFERENCE, capture_reference(activity))
        await scope.commit()

        logger.info(
            "Captured conversation reference",
            extra={"conversation_id": conversation_id, "channel_id": activity.channel_id},
        )
        await turn_context.send_activity(f"{activity.type} event detected")

    def _is_trigger(self, text: str | None) -> bool:
        """Check whether a message asks for a proactive demo.

        Args:
            text: Message content

        Returns:
            True if the trimmed, lowered text starts with the trigger word
        """
        if not text:
            return False
        return text.strip().lower().startswith(self.trigger_word)

    async def _send_proactive_trigger(self, turn_context: TurnContext, scope: ConversationScope) -> None:
        """POST a proactive request for this conversation to the trigger endpoint."""
        reference = await scope.get(CONVERSATION_REFERENCE)
        if reference is None:
            reference = capture_reference(turn_context.activity)

        await turn_context.send_activity(PROACTIVE_NOTICE)
        await self.trigger_client.send(ProactiveRequest.for_reference(reference, self.demo_message))
