"""Root RelaySettings model."""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from relay_core.config._loader import YamlSettingsSource
from relay_core.config._sections import (
    BotSettings,
    LoggingSettings,
    ProactiveSettings,
    StorageSettings,
)


class RelaySettings(BaseSettings):
    model_config = {"env_nested_delimiter": "__", "case_sensitive": False, "extra": "ignore"}

    bot: BotSettings = Field(default_factory=BotSettings)
    proactive: ProactiveSettings = Field(default_factory=ProactiveSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            env_settings,
            YamlSettingsSource(settings_cls),
            init_settings,
        )
