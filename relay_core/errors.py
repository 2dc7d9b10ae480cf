"""Exception hierarchy for the proactive relay.

All exceptions inherit from :class:`RelayError` so callers can
catch broadly or narrowly as needed.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for all relay errors."""


class AccessDeniedError(RelayError):
    """The transport refused to act on behalf of the bot for this reference."""


class InvalidReferenceError(RelayError):
    """A conversation reference lacks the fields needed to re-enter a conversation."""


class ReferenceNotFoundError(RelayError):
    """No conversation reference has been stored for the requested conversation."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"No conversation reference stored for {conversation_id!r}")
        self.conversation_id = conversation_id


class InvalidProactiveRequestError(RelayError):
    """A proactive trigger payload could not be parsed."""


class ContinuationTimeoutError(RelayError):
    """Delivering a proactive message took longer than the configured timeout."""
