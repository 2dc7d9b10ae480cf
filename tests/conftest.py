"""Pytest configuration and fixtures for proactive relay tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from botbuilder.schema import (
    Activity,
    ChannelAccount,
    ConversationAccount,
    ConversationReference,
)

from relay_core.config import reset_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop the settings singleton around every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def make_activity():
    """Factory for inbound activities in a test conversation."""

    def _make(
        activity_type: str = "message",
        text: str | None = None,
        conversation_id: str = "conv-1",
        members_added: list[ChannelAccount] | None = None,
    ) -> Activity:
        return Activity(
            type=activity_type,
            id="activity-1",
            text=text,
            channel_id="emulator",
            service_url="http://localhost:50000",
            from_property=ChannelAccount(id="user-1", name="Test User"),
            recipient=ChannelAccount(id="bot-1", name="Relay"),
            conversation=ConversationAccount(id=conversation_id),
            members_added=members_added,
        )

    return _make


@pytest.fixture
def make_turn_context():
    """Factory for a turn context wrapping a real activity."""

    def _make(activity: Activity) -> MagicMock:
        context = MagicMock()
        context.activity = activity
        context.send_activity = AsyncMock()
        return context

    return _make


@pytest.fixture
def sample_reference():
    """A reference to conversation ``conv-1`` on the emulator channel."""
    return ConversationReference(
        activity_id="activity-1",
        user=ChannelAccount(id="user-1", name="Test User"),
        bot=ChannelAccount(id="bot-1", name="Relay"),
        conversation=ConversationAccount(id="conv-1"),
        channel_id="emulator",
        service_url="http://localhost:50000",
    )
