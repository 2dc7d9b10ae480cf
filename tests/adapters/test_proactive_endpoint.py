"""Tests for the proactive trigger endpoint and host routes."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp import test_utils
from botbuilder.core import MemoryStorage

from relay_core.config import RelaySettings
from relay_core.models import serialize_reference
from relay_core.storage import ConversationStore


@pytest.fixture
def settings():
    settings = RelaySettings()
    settings.bot.app_id = "app-123"
    return settings


@pytest.fixture
def mock_adapter():
    """Adapter whose continuation runs the callback against a mock context."""
    adapter = MagicMock()
    adapter.delivered = []

    async def continue_conversation(reference, callback, bot_id):
        context = MagicMock()
        context.send_activity = AsyncMock(side_effect=lambda text: adapter.delivered.append((reference, text)))
        await callback(context)

    adapter.continue_conversation = AsyncMock(side_effect=continue_conversation)
    return adapter


@pytest.fixture
def store():
    return ConversationStore(MemoryStorage())


@pytest.fixture
def mock_trigger_client():
    client = MagicMock()
    client.send = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def app(settings, mock_adapter, store, mock_trigger_client):
    from adapters.botframework.main import create_app

    return create_app(settings, adapter=mock_adapter, store=store, trigger_client=mock_trigger_client)


def _payload(reference, message="ping"):
    return json.dumps({"conversationReference": serialize_reference(reference), "message": message})


class TestProactiveEndpoint:
    """Tests for POST /api/proactive."""

    @pytest.mark.asyncio
    async def test_delivers_message(self, app, mock_adapter, sample_reference):
        """A valid request continues the referenced conversation with the message."""
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/api/proactive",
                data=_payload(sample_reference),
                headers={"Content-Type": "application/json"},
            )

        assert resp.status == 200
        mock_adapter.continue_conversation.assert_called_once()
        assert mock_adapter.continue_conversation.call_args.args[2] == "app-123"
        reference, text = mock_adapter.delivered[0]
        assert reference.conversation.id == "conv-1"
        assert text == "ping"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    async def test_rejects_other_methods(self, app, mock_adapter, sample_reference, method):
        """Only POST is accepted, and nothing is delivered otherwise."""
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.request(method, "/api/proactive", data=_payload(sample_reference))

        assert resp.status == 405
        mock_adapter.continue_conversation.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"", b"   \n"])
    async def test_rejects_empty_body(self, app, mock_adapter, body):
        """Empty bodies are rejected before any delivery attempt."""
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/api/proactive", data=body)

        assert resp.status == 400
        mock_adapter.continue_conversation.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            "{not json",
            '{"message": "missing target"}',
            '{"conversationReference": {"conversation": {"id": "conv-1"}}, "message": "no service url"}',
        ],
    )
    async def test_rejects_malformed_payload(self, app, mock_adapter, body):
        """Payloads that cannot address a conversation are bad requests."""
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/api/proactive", data=body)

        assert resp.status == 400
        mock_adapter.continue_conversation.assert_not_called()

    @pytest.mark.asyncio
    async def test_access_denied_maps_to_forbidden(self, app, mock_adapter, sample_reference):
        """Authentication failures from the transport become 403."""
        mock_adapter.continue_conversation.side_effect = PermissionError("Unauthorized Access")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/api/proactive", data=_payload(sample_reference))

        assert resp.status == 403

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_server_error(self, app, mock_adapter, sample_reference):
        """Other transport failures surface as 500."""
        mock_adapter.continue_conversation.side_effect = RuntimeError("connector unreachable")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/api/proactive", data=_payload(sample_reference))

        assert resp.status == 500

    @pytest.mark.asyncio
    async def test_transport_timeout_is_server_error(self, app, mock_adapter, sample_reference):
        """A transport timeout with no continuation limit configured is not a 504."""
        mock_adapter.continue_conversation.side_effect = asyncio.TimeoutError("connector read timed out")

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/api/proactive", data=_payload(sample_reference))

        assert resp.status == 500

    @pytest.mark.asyncio
    async def test_conversation_id_uses_stored_reference(self, app, store, mock_adapter, sample_reference):
        """Id-only requests resolve the reference captured for that conversation."""
        await store.set("conv-1", sample_reference)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/api/proactive",
                data=json.dumps({"conversationId": "conv-1", "message": "ping"}),
            )

        assert resp.status == 200
        reference, text = mock_adapter.delivered[0]
        assert reference.service_url == sample_reference.service_url
        assert text == "ping"

    @pytest.mark.asyncio
    async def test_unknown_conversation_id_fails(self, app, mock_adapter):
        """A conversation never joined cannot be continued."""
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post(
                "/api/proactive",
                data=json.dumps({"conversationId": "never-seen", "message": "ping"}),
            )

        assert resp.status == 404
        mock_adapter.continue_conversation.assert_not_called()


class TestHostRoutes:
    @pytest.mark.asyncio
    async def test_health(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.get("/health")
            data = await resp.json()

        assert resp.status == 200
        assert data == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_messages_requires_json(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/api/messages", data="hello", headers={"Content-Type": "text/plain"})

        assert resp.status == 415

    @pytest.mark.asyncio
    async def test_messages_forwarded_to_adapter(self, app, mock_adapter):
        """Inbound activities are handed to the adapter with the bot."""
        mock_adapter.process = AsyncMock(return_value=None)

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post("/api/messages", json={"type": "message", "text": "hi"})

        assert resp.status == 200
        mock_adapter.process.assert_called_once()
        assert mock_adapter.process.call_args.args[1] is app["bot"]

    @pytest.mark.asyncio
    async def test_cleanup_closes_trigger_client(self, app, mock_trigger_client):
        async with test_utils.TestClient(test_utils.TestServer(app)):
            pass

        mock_trigger_client.close.assert_called_once()


class TestMain:
    @pytest.mark.asyncio
    async def test_failed_start_still_cleans_up(self):
        """Runner cleanup and logging shutdown run even when the site cannot bind."""
        runner = MagicMock()
        runner.setup = AsyncMock()
        runner.cleanup = AsyncMock()
        site = MagicMock()
        site.start = AsyncMock(side_effect=OSError("address already in use"))

        with (
            patch("adapters.botframework.main.create_app", return_value=MagicMock()),
            patch("adapters.botframework.main.web.AppRunner", return_value=runner),
            patch("adapters.botframework.main.web.TCPSite", return_value=site),
            patch("adapters.botframework.main.shutdown_logging") as shutdown,
        ):
            from adapters.botframework.main import main

            with pytest.raises(OSError):
                await main()

        runner.cleanup.assert_called_once()
        shutdown.assert_called_once()
