"""Standalone Bot Framework host for the proactive relay.

Usage:
    python -m adapters.botframework

Environment variables:
    BOT__APP_ID - Azure Bot registration App ID (empty for the local emulator)
    BOT__APP_PASSWORD - Azure Bot registration password
    BOT__APP_TYPE - App type: MultiTenant, SingleTenant, or ManagedIdentity (default: MultiTenant)
    BOT__APP_TENANT_ID - Tenant ID for SingleTenant apps (optional)
    BOT__PORT - Port to listen on (default: 3978)
    PROACTIVE__TRIGGER_URL - Where the demo posts proactive requests
        (default: http://localhost:3978/api/proactive)
"""

from __future__ import annotations

import asyncio
import signal

from aiohttp import web
from botbuilder.core import BotAdapter, TurnContext
from botbuilder.core.integration import aiohttp_error_middleware
from botbuilder.integration.aiohttp import CloudAdapter, ConfigurationBotFrameworkAuthentication

from adapters.botframework.bot import ProactiveBot
from adapters.botframework.proactive import ProactiveEndpoint
from adapters.botframework.trigger_client import TriggerClient
from config.logging import get_logger, set_console_level, shutdown_logging
from relay_core.config import RelaySettings, get_settings
from relay_core.config._sections import BotSettings
from relay_core.continuation import ContinuationEngine
from relay_core.storage import ConversationStore

logger = get_logger("adapters.botframework")


class BotConfig:
    """Bot Framework configuration for CloudAdapter.

    Note: Attribute names must match what ConfigurationBotFrameworkAuthentication expects:
    APP_ID, APP_PASSWORD, APP_TYPE, APP_TENANTID (not MicrosoftAppId, etc.)
    """

    def __init__(self, settings: BotSettings) -> None:
        self.PORT = settings.port
        self.APP_ID = settings.app_id
        self.APP_PASSWORD = settings.app_password
        self.APP_TYPE = settings.app_type
        self.APP_TENANTID = settings.app_tenant_id


def create_adapter(settings: BotSettings) -> CloudAdapter:
    """Create a CloudAdapter that logs turn errors and apologizes to the user."""
    adapter = CloudAdapter(ConfigurationBotFrameworkAuthentication(BotConfig(settings)))

    async def on_error(context: TurnContext, error: Exception) -> None:
        logger.error(f"Adapter error: {error}", exc_info=error)
        try:
            await context.send_activity("Sorry, something went wrong.")
        except Exception as e:
            logger.debug(f"Could not report turn error to user: {e}")

    adapter.on_turn_error = on_error
    return adapter


async def messages(req: web.Request) -> web.Response:
    """Handle incoming Bot Framework activities."""
    bot: ProactiveBot = req.app["bot"]
    adapter: CloudAdapter = req.app["adapter"]

    if "application/json" not in req.headers.get("Content-Type", ""):
        return web.Response(status=415)

    # CloudAdapter handles activity deserialization and auth internally
    try:
        response = await adapter.process(req, bot)
        if response:
            return response
        return web.Response(status=200)
    except Exception as e:
        logger.error(f"Error processing activity: {e}", exc_info=True)
        return web.Response(status=500, text=str(e))


async def health(req: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({"status": "healthy"})


async def on_cleanup(app: web.Application) -> None:
    trigger_client: TriggerClient = app["trigger_client"]
    await trigger_client.close()


def create_app(
    settings: RelaySettings | None = None,
    adapter: BotAdapter | None = None,
    store: ConversationStore | None = None,
    trigger_client: TriggerClient | None = None,
) -> web.Application:
    """Build the aiohttp application.

    Args:
        settings: Settings to use (defaults to the process-wide settings)
        adapter: Transport adapter (defaults to a CloudAdapter from settings)
        store: Conversation state store (defaults to in-memory storage)
        trigger_client: Client for the demo's proactive POST

    Returns:
        Application exposing /api/messages, /api/proactive and /health
    """
    settings = settings or get_settings()
    adapter = adapter or create_adapter(settings.bot)
    store = store or ConversationStore(namespace=settings.storage.namespace)
    trigger_client = trigger_client or TriggerClient(
        settings.proactive.trigger_url,
        timeout=settings.proactive.request_timeout_seconds,
    )

    bot = ProactiveBot(
        store,
        trigger_client,
        trigger_word=settings.proactive.trigger_word,
        demo_message=settings.proactive.demo_message,
    )
    engine = ContinuationEngine(adapter, timeout=settings.proactive.continuation_timeout_seconds)
    endpoint = ProactiveEndpoint(engine, store, app_id=settings.bot.app_id)

    app = web.Application(middlewares=[aiohttp_error_middleware])
    app["settings"] = settings
    app["adapter"] = adapter
    app["store"] = store
    app["trigger_client"] = trigger_client
    app["bot"] = bot
    app["engine"] = engine
    app.on_cleanup.append(on_cleanup)

    app.router.add_post("/api/messages", messages)
    app.router.add_route("*", "/api/proactive", endpoint.handle)
    app.router.add_get("/health", health)
    return app


async def main() -> None:
    """Run the Bot Framework host."""
    settings = get_settings()
    set_console_level(settings.logging.level)

    if not settings.bot.app_id:
        logger.warning("BOT__APP_ID not set; only the local emulator will be able to talk to this bot")

    app = create_app(settings)

    # Set up signal handlers
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    runner = web.AppRunner(app)
    await runner.setup()
    try:
        site = web.TCPSite(runner, settings.bot.host, settings.bot.port)
        await site.start()

        logger.info(f"Bot listening on http://{settings.bot.host}:{settings.bot.port}")
        logger.info(f"Messaging endpoint: http://{settings.bot.host}:{settings.bot.port}/api/messages")
        logger.info(f"Proactive endpoint: http://{settings.bot.host}:{settings.bot.port}/api/proactive")

        await stop_event.wait()
    finally:
        await runner.cleanup()
        logger.info("Bot stopped")
        shutdown_logging()


def run() -> None:
    """Sync entry point for console scripts."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
