"""Conversation state storage configuration models."""

from pydantic import BaseModel


class StorageSettings(BaseModel):
    namespace: str = "conversations"
