"""Bot Framework adapter: turn handling, proactive trigger endpoint and host."""

from adapters.botframework.bot import ProactiveBot
from adapters.botframework.proactive import ProactiveEndpoint
from adapters.botframework.trigger_client import TriggerClient

__all__ = ["ProactiveBot", "ProactiveEndpoint", "TriggerClient"]
