"""State and wire models for the proactive relay.

Conversation references travel in the Bot Framework camelCase JSON shape,
both on the ``/api/proactive`` wire and inside storage records.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from botbuilder.core import TurnContext
from botbuilder.schema import Activity, ConversationReference
from msrest.exceptions import DeserializationError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from relay_core.errors import InvalidProactiveRequestError, InvalidReferenceError


@dataclass
class CounterState:
    """Per-conversation message counter."""

    turn_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CounterState:
        if not data:
            return cls()
        return cls(turn_count=int(data.get("turn_count", 0)))


def capture_reference(activity: Activity) -> ConversationReference:
    """Snapshot the conversation an inbound activity belongs to."""
    return TurnContext.get_conversation_reference(activity)


def serialize_reference(reference: ConversationReference) -> dict[str, Any]:
    """Convert a reference to its JSON-compatible Bot Framework form."""
    return reference.serialize()


def deserialize_reference(data: dict[str, Any]) -> ConversationReference:
    """Rebuild a reference from its JSON-compatible form.

    Raises:
        InvalidReferenceError: If the data is not a reference object.
    """
    if not isinstance(data, dict):
        raise InvalidReferenceError("Conversation reference must be a JSON object")
    try:
        return ConversationReference.deserialize(data)
    except DeserializationError as e:
        raise InvalidReferenceError(f"Malformed conversation reference: {e}") from e


def reference_conversation_id(reference: ConversationReference) -> str | None:
    """Return the conversation id a reference points at, if any."""
    conversation = reference.conversation
    return conversation.id if conversation is not None else None


class ProactiveRequest(BaseModel):
    """Payload accepted by the proactive trigger endpoint.

    Either a full ``conversationReference`` or a ``conversationId`` whose
    reference was captured earlier must be present.
    """

    model_config = ConfigDict(populate_by_name=True)

    conversation_reference: dict[str, Any] | None = Field(None, alias="conversationReference")
    conversation_id: str | None = Field(None, alias="conversationId")
    message: str = Field(..., description="Text of the proactive message")

    @model_validator(mode="after")
    def _require_target(self) -> ProactiveRequest:
        if self.conversation_reference is None and not self.conversation_id:
            raise ValueError("conversationReference or conversationId is required")
        return self

    @classmethod
    def for_reference(cls, reference: ConversationReference, message: str) -> ProactiveRequest:
        return cls(conversation_reference=serialize_reference(reference), message=message)

    @classmethod
    def parse(cls, body: str) -> ProactiveRequest:
        """Parse a JSON request body.

        Raises:
            InvalidProactiveRequestError: If the body is not a valid payload.
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise InvalidProactiveRequestError(str(e)) from e

    def reference(self) -> ConversationReference | None:
        """Return the embedded reference, if the payload carries one."""
        if self.conversation_reference is None:
            return None
        return deserialize_reference(self.conversation_reference)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
