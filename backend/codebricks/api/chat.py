"""
Chat API endpoints - Handle conversational interactions.
Supports text messages with image and voice attachments.
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, Query, Request, UploadFile

from .flows import resolve_provider
from ..core.errors import InputValidationError
from ..flows import chat_flow, ChatWithAiInput, ChatWithAiOutput
from ..llm.base import LLMProvider
from ..models import AIModel
from ..utils.media import ALLOWED_IMAGE_TYPES, encode_data_uri

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

MAX_IMAGE_SIZE = 10 * 1024 * 1024
MAX_AUDIO_SIZE = 25 * 1024 * 1024


async def _transcribe_if_needed(
    request: Request,
    provider: Optional[LLMProvider],
    chat_input: ChatWithAiInput,
) -> ChatWithAiInput:
    """
    Replace the voice attachment with its transcript when the selected
    model cannot take audio input.

    Raises:
        InputValidationError: If no transcription service is configured
    """
    if provider is None or provider.supports_audio or not chat_input.audio_data_uri:
        return chat_input

    transcription = request.app.state.transcription
    if not transcription.is_configured():
        raise InputValidationError(
            f"The {provider.name} model does not accept audio input and "
            f"speech-to-text is not configured."
        )

    transcript = await transcription.transcribe_data_uri(chat_input.audio_data_uri)
    logger.info(
        "Voice message transcribed for text-only model",
        extra={"extra_fields": {"provider": provider.name, "transcript_length": len(transcript)}}
    )
    message = "\n\n".join(part for part in (chat_input.message, transcript) if part)
    return chat_input.model_copy(update={"message": message, "audio_data_uri": None})


async def _run_chat(
    request: Request,
    chat_input: ChatWithAiInput,
    ai_model: Optional[AIModel],
) -> ChatWithAiOutput:
    provider = resolve_provider(request, ai_model)
    chat_input = await _transcribe_if_needed(request, provider, chat_input)
    return await chat_flow.run(provider, chat_input)


@router.post("/message", response_model=ChatWithAiOutput)
async def send_message(
    payload: ChatWithAiInput,
    request: Request,
    ai_model: Optional[AIModel] = Query(None, description="Model to chat with"),
):
    """
    Send a chat message and get the assistant's reply.

    Images and audio are passed inline as base64 data URIs.
    """
    return await _run_chat(request, payload, ai_model)


async def _read_upload(upload: UploadFile, kind: str, max_size: int) -> str:
    content_type = (upload.content_type or "").lower()
    if kind == "image" and content_type not in ALLOWED_IMAGE_TYPES:
        raise InputValidationError(
            f"Invalid image type: {upload.content_type}. "
            f"Allowed types: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}"
        )
    if kind == "audio" and not content_type.startswith("audio/"):
        raise InputValidationError(f"Invalid audio type: {upload.content_type}.")

    content = await upload.read()
    if not content:
        raise InputValidationError(f"The attached {kind} is empty.")
    if len(content) > max_size:
        raise InputValidationError(
            f"The attached {kind} is too large. Maximum size: {max_size // (1024 * 1024)}MB"
        )
    return encode_data_uri(content, content_type)


def _parse_history(history: Optional[str]) -> List[dict]:
    if not history:
        return []
    try:
        items = json.loads(history)
    except json.JSONDecodeError:
        raise InputValidationError("Chat history must be a JSON array.")
    if not isinstance(items, list):
        raise InputValidationError("Chat history must be a JSON array.")
    return items


@router.post("/message-with-attachments", response_model=ChatWithAiOutput)
async def send_message_with_attachments(
    request: Request,
    message: Optional[str] = Form(None),
    history: Optional[str] = Form(None, description="JSON array of previous messages"),
    image: Optional[UploadFile] = File(None),
    audio: Optional[UploadFile] = File(None),
    ai_model: Optional[AIModel] = Query(None, description="Model to chat with"),
):
    """
    Send a chat message with an uploaded image and/or voice recording.

    Args:
        message: Optional text message
        history: Previous messages as a JSON string
        image: Image file (JPEG, PNG, WebP or GIF)
        audio: Audio recording
    """
    data = {"message": message, "history": _parse_history(history)}
    if image is not None:
        data["image_data_uri"] = await _read_upload(image, "image", MAX_IMAGE_SIZE)
    if audio is not None:
        data["audio_data_uri"] = await _read_upload(audio, "audio", MAX_AUDIO_SIZE)

    chat_input = chat_flow.validate_input(data)
    return await _run_chat(request, chat_input, ai_model)
