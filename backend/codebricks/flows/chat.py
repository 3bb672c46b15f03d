"""
Chat with the assistant, with conversation history and optional
image and audio attachments.
"""

from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, Field

from .base import FlowModel, NonEmptyStr, PromptFlow
from ..core.errors import InputValidationError
from ..utils.media import MediaPart, parse_data_uri

EMPTY_INPUT_RESPONSE = "Please provide some input to chat."


def _data_uri_validator(kind: str):
    def check(value: str) -> str:
        try:
            parse_data_uri(value, expected_kind=kind)
        except InputValidationError as e:
            raise ValueError(e.description)
        return value
    return AfterValidator(check)


ImageDataUri = Annotated[str, _data_uri_validator("image")]
AudioDataUri = Annotated[str, _data_uri_validator("audio")]


class ChatHistoryItem(FlowModel):
    sender: Literal["user", "assistant"]
    text: Optional[str] = None
    image_data_uri: Optional[ImageDataUri] = None


class ChatWithAiInput(FlowModel):
    history: List[ChatHistoryItem] = Field(default_factory=list)
    message: Optional[str] = None
    image_data_uri: Optional[ImageDataUri] = None
    audio_data_uri: Optional[AudioDataUri] = None

    def is_empty(self) -> bool:
        return not (
            (self.message and self.message.strip())
            or self.image_data_uri
            or self.audio_data_uri
            or self.history
        )


class ChatWithAiOutput(FlowModel):
    response: NonEmptyStr = Field(..., description="The assistant's reply, in markdown.")


SYSTEM_PROMPT = """You are CodeBricks AI, a helpful and friendly coding assistant.
You help users with coding tasks, answer their questions and help them understand code.
Be clear and concise. When asked to write code, reply with just the code block.
Take the conversation history into account."""

TEMPLATE = """{% if history %}
Conversation history:
{% for item in history %}
{{ item.sender }}:{% if item.text %} {{ item.text }}{% endif %}{% if item.image_data_uri %} [image attached]{% endif %}

{% endfor %}
---
{% endif %}
Current user input:
{% if message %}
Text: {{ message }}
{% endif %}
{% if image_data_uri %}
Image: [attached]
{% endif %}
{% if audio_data_uri %}
Audio: [attached voice message - listen to it and respond to what is said]
{% endif %}"""


def collect_chat_media(flow_input: ChatWithAiInput) -> List[MediaPart]:
    """Images from the history first, then the current image and audio."""
    media = [
        parse_data_uri(item.image_data_uri)
        for item in flow_input.history
        if item.image_data_uri
    ]
    if flow_input.image_data_uri:
        media.append(parse_data_uri(flow_input.image_data_uri))
    if flow_input.audio_data_uri:
        media.append(parse_data_uri(flow_input.audio_data_uri))
    return media


def _empty_input_reply(flow_input: ChatWithAiInput) -> Optional[ChatWithAiOutput]:
    if flow_input.is_empty():
        return ChatWithAiOutput(response=EMPTY_INPUT_RESPONSE)
    return None


chat_flow = PromptFlow(
    name="chat",
    input_model=ChatWithAiInput,
    output_model=ChatWithAiOutput,
    template=TEMPLATE,
    system_prompt=SYSTEM_PROMPT,
    media=collect_chat_media,
    shortcut=_empty_input_reply,
    temperature=0.7,
)
