"""HTTP endpoint that delivers proactive messages into known conversations.

Request body:
    {"conversationReference": {...}, "message": "..."}
or, for a conversation whose reference was captured by this bot:
    {"conversationId": "...", "message": "..."}
"""

from __future__ import annotations

from aiohttp import web
from botbuilder.schema import ConversationReference

from config.logging import get_logger
from relay_core.continuation import ContinuationEngine
from relay_core.errors import (
    AccessDeniedError,
    ContinuationTimeoutError,
    InvalidProactiveRequestError,
    InvalidReferenceError,
    ReferenceNotFoundError,
)
from relay_core.models import ProactiveRequest
from relay_core.storage import ConversationStore

logger = get_logger("adapters.botframework.proactive")


class ProactiveEndpoint:
    """aiohttp handler for ``/api/proactive``.

    Malformed requests are rejected before any delivery is attempted.
    """

    def __init__(self, engine: ContinuationEngine, store: ConversationStore, app_id: str) -> None:
        self._engine = engine
        self._store = store
        self._app_id = app_id

    async def handle(self, request: web.Request) -> web.Response:
        if request.method != "POST":
            return web.Response(status=405, headers={"Allow": "POST"})

        try:
            body = (await request.read()).decode("utf-8")
        except UnicodeDecodeError:
            return self._reject(400, "Request body is not valid UTF-8")

        if not body.strip():
            return self._reject(400, "Request body is empty")

        try:
            proactive_request = ProactiveRequest.parse(body)
            reference = await self._resolve_reference(proactive_request)
            await self._engine.deliver(self._app_id, reference, proactive_request.message)
        except (InvalidProactiveRequestError, InvalidReferenceError) as e:
            return self._reject(400, str(e))
        except ReferenceNotFoundError as e:
            return self._reject(404, str(e))
        except AccessDeniedError:
            return self._reject(403, "Access denied")
        except ContinuationTimeoutError as e:
            return self._reject(504, str(e))

        return web.Response(status=200)

    async def _resolve_reference(self, proactive_request: ProactiveRequest) -> ConversationReference:
        reference = proactive_request.reference()
        if reference is not None:
            return reference

        conversation_id = proactive_request.conversation_id
        reference = await self._store.get(conversation_id)
        if reference is None:
            raise ReferenceNotFoundError(conversation_id)
        return reference

    def _reject(self, status: int, reason: str) -> web.Response:
        logger.warning(f"Rejected proactive request: {reason}", extra={"status_code": status})
        return web.Response(status=status, text=reason)
