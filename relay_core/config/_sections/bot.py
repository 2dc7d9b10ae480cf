"""Bot Framework registration and listener configuration models."""

from pydantic import BaseModel


class BotSettings(BaseModel):
    app_id: str = ""
    app_password: str = ""
    app_type: str = "MultiTenant"
    app_tenant_id: str = ""
    host: str = "0.0.0.0"
    port: int = 3978
