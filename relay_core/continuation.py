"""Re-entering a previously seen conversation from outside a live turn.

The transport adapter builds a synthetic turn context bound to a stored
conversation reference and runs a callback inside it. This module owns the
callback construction, reference validation and failure mapping; the actual
delivery to the channel's service URL belongs to the adapter.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from botbuilder.core import BotAdapter, TurnContext
from botbuilder.schema import ConversationReference
from msrest.exceptions import HttpOperationError

from config.logging import get_logger
from relay_core.errors import AccessDeniedError, ContinuationTimeoutError, InvalidReferenceError
from relay_core.models import reference_conversation_id

logger = get_logger("relay_core.continuation")

ContinuationCallback = Callable[[TurnContext], Awaitable[None]]

# Connector responses that mean the bot may not act on this conversation.
_ACCESS_DENIED_STATUSES = {401, 403}


def create_callback(message: str) -> ContinuationCallback:
    """Build the callback that sends one proactive message."""

    async def callback(turn_context: TurnContext) -> None:
        await turn_context.send_activity(message)

    return callback


def validate_reference(reference: ConversationReference | None) -> ConversationReference:
    """Ensure a reference can address a conversation.

    Raises:
        InvalidReferenceError: If the reference is missing a routing field.
    """
    if reference is None:
        raise InvalidReferenceError("Conversation reference is required")
    if not reference_conversation_id(reference):
        raise InvalidReferenceError("Conversation reference has no conversation id")
    if not reference.channel_id:
        raise InvalidReferenceError("Conversation reference has no channel id")
    if not reference.service_url:
        raise InvalidReferenceError("Conversation reference has no service URL")
    return reference


def _is_access_denied(error: Exception) -> bool:
    if isinstance(error, PermissionError):
        return True
    if isinstance(error, HttpOperationError):
        response = getattr(error, "response", None)
        return getattr(response, "status_code", None) in _ACCESS_DENIED_STATUSES
    return False


class ContinuationEngine:
    """Runs callbacks inside conversations captured in earlier turns."""

    def __init__(self, adapter: BotAdapter, timeout: float | None = None) -> None:
        """Initialize the engine.

        Args:
            adapter: Transport adapter that constructs the synthetic turn
            timeout: Default upper bound in seconds for one continuation
        """
        self._adapter = adapter
        self._timeout = timeout

    async def continue_conversation(
        self,
        app_id: str,
        reference: ConversationReference,
        callback: ContinuationCallback,
        timeout: float | None = None,
    ) -> None:
        """Invoke ``callback`` with a turn context bound to ``reference``.

        Cancelling the calling task cancels the delivery attempt.

        Args:
            app_id: Bot application id used to authenticate with the channel
            reference: Previously captured conversation reference
            callback: Async callable run inside the synthetic turn
            timeout: Overrides the engine's default timeout

        Raises:
            InvalidReferenceError: If the reference cannot address a conversation
            AccessDeniedError: If the channel rejected the bot's credentials
            ContinuationTimeoutError: If the attempt exceeded the timeout
        """
        validate_reference(reference)
        conversation_id = reference_conversation_id(reference)
        limit = timeout if timeout is not None else self._timeout

        logger.info(
            "Continuing conversation",
            extra={"conversation_id": conversation_id, "channel_id": reference.channel_id},
        )

        try:
            # Positional app id: BotFrameworkAdapter and CloudAdapter name it differently.
            pending = self._adapter.continue_conversation(reference, callback, app_id)
            if limit is None:
                await pending
            else:
                try:
                    await asyncio.wait_for(pending, timeout=limit)
                except asyncio.TimeoutError as e:
                    raise ContinuationTimeoutError(f"Continuation did not finish within {limit}s") from e
        except Exception as e:
            if _is_access_denied(e):
                logger.warning(
                    f"Access denied while continuing conversation: {e}",
                    extra={"conversation_id": conversation_id},
                )
                raise AccessDeniedError(str(e)) from e
            raise

    async def deliver(
        self,
        app_id: str,
        reference: ConversationReference,
        message: str,
        timeout: float | None = None,
    ) -> None:
        """Send ``message`` into the conversation ``reference`` points at."""
        await self.continue_conversation(app_id, reference, create_callback(message), timeout=timeout)
