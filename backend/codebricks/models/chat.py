"""
Chat Models - messages of an in-memory chat session.
"""

import uuid
from datetime import datetime, timezone
from typing import Literal, Optional
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A message in a chat session. Never persisted."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    text: Optional[str] = None
    sender: Literal["user", "assistant"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    image_data_uri: Optional[str] = None
    audio_data_uri: Optional[str] = None
