"""
LLM Provider Base - Abstract base for all LLM API providers.
Supports multimodal messages (text + images + audio).
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field

from ..utils.media import MediaPart


@dataclass
class LLMMessage:
    """
    Represents a message in a conversation.
    Content is either plain text or a list of OpenAI-style content blocks.
    """
    role: str  # "system", "user", "assistant"
    content: Union[str, List[Dict[str, Any]]]

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        """Create a text-only message."""
        return LLMMessage(role=role, content=text)

    @staticmethod
    def multimodal(role: str, text: str, media: Optional[List[MediaPart]] = None) -> "LLMMessage":
        """
        Create a multimodal message with text and inline media.

        Args:
            role: Message role
            text: Text content
            media: Images and audio clips, placed before the text
        """
        content_parts: List[Dict[str, Any]] = []

        for part in media or []:
            if part.kind == "image":
                content_parts.append({
                    "type": "image_url",
                    "image_url": {"url": part.to_data_uri()}
                })
            elif part.kind == "audio":
                content_parts.append({
                    "type": "input_audio",
                    "input_audio": {"data": part.data, "format": part.subtype}
                })
            else:
                raise ValueError(f"Unsupported media type: {part.mime_type}")

        content_parts.append({"type": "text", "text": text})

        return LLMMessage(role=role, content=content_parts)

    def has_media(self, kind: str) -> bool:
        if isinstance(self.content, str):
            return False
        block_type = {"image": "image_url", "audio": "input_audio"}[kind]
        return any(block.get("type") == block_type for block in self.content)


@dataclass
class LLMResponse:
    """Response from an LLM API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    Abstract base class for LLM API providers.
    All providers must implement chat_completion.
    """

    name = "base"
    supports_images = False
    supports_audio = False

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.7, default_max_tokens: int = 2048,
                 log_calls: bool = True):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.log_calls = log_calls

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_output: bool = False,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of conversation messages (supports multimodal)
            temperature: Sampling temperature override
            max_tokens: Max tokens override
            json_output: Ask the provider to constrain the reply to JSON
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the generated content
        """
        pass

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Convert LLMMessage list to API-compatible format."""
        return [{"role": m.role, "content": m.content} for m in messages]
