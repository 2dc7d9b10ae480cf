"""Proactive trigger configuration models."""

from pydantic import BaseModel


class ProactiveSettings(BaseModel):
    trigger_url: str = "http://localhost:3978/api/proactive"
    trigger_word: str = "proactive"
    demo_message: str = "Hello"
    request_timeout_seconds: float = 10.0
    continuation_timeout_seconds: float | None = None
