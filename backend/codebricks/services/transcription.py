"""
Speech-to-Text Transcription Service using OpenAI Whisper API.
Used for chat audio when the selected model cannot take audio input.
"""

import io
import logging
from typing import Optional
from openai import AsyncOpenAI, OpenAIError

from ..core.errors import ProviderError
from ..utils.media import MediaPart, decode_data_uri, parse_data_uri

logger = logging.getLogger(__name__)


class TranscriptionService:
    """
    Service for transcribing audio clips to text using OpenAI Whisper API.
    """

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize transcription service.

        Args:
            api_key: OpenAI API key. Without one the service is not configured.
        """
        self.api_key = api_key
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None

    def is_configured(self) -> bool:
        return self.client is not None

    async def transcribe_data_uri(self, audio_data_uri: str, language: Optional[str] = None) -> str:
        """
        Transcribe an audio data URI to text.

        Args:
            audio_data_uri: ``data:audio/<format>;base64,...``
            language: Optional ISO 639-1 language hint

        Returns:
            str: The transcribed text

        Raises:
            RuntimeError: If the service is not configured
            ProviderError: If the transcription request fails
        """
        if not self.client:
            raise RuntimeError("Transcription service not configured. Set OPENAI_API_KEY.")

        part: MediaPart = parse_data_uri(audio_data_uri, expected_kind="audio")
        # Whisper detects the format from the file extension
        extension = part.subtype.split(";")[0].replace("x-", "").replace("mpeg", "mp3")
        audio_file = io.BytesIO(decode_data_uri(audio_data_uri))
        audio_file.name = f"audio.{extension}"

        params = {"model": "whisper-1", "file": audio_file}
        if language:
            params["language"] = language

        try:
            response = await self.client.audio.transcriptions.create(**params)
        except OpenAIError as e:
            logger.error(f"Transcription failed: {e}", exc_info=True)
            raise ProviderError(f"Transcription failed: {e}") from e

        logger.info(
            "Audio transcribed",
            extra={"extra_fields": {"audio_bytes": audio_file.getbuffer().nbytes}}
        )
        return response.text
