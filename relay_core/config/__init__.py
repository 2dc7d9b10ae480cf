"""Unified configuration for the proactive relay.

Usage:
    from relay_core.config import get_settings

    s = get_settings()
    s.bot.app_id              # "..."
    s.proactive.trigger_url   # "http://localhost:3978/api/proactive"
"""

from __future__ import annotations

from relay_core.config._settings import RelaySettings

_settings: RelaySettings | None = None


def get_settings() -> RelaySettings:
    """Return the singleton RelaySettings instance (created on first call)."""
    global _settings
    if _settings is None:
        _settings = RelaySettings()
    return _settings


def reset_settings() -> None:
    """Force re-creation of the settings singleton (useful for tests)."""
    global _settings
    _settings = None


__all__ = ["RelaySettings", "get_settings", "reset_settings"]
