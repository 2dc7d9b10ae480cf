"""Config section models."""

from relay_core.config._sections.bot import BotSettings
from relay_core.config._sections.logging import LoggingSettings
from relay_core.config._sections.proactive import ProactiveSettings
from relay_core.config._sections.storage import StorageSettings

__all__ = [
    "BotSettings",
    "LoggingSettings",
    "ProactiveSettings",
    "StorageSettings",
]
