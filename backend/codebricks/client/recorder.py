"""
Audio Recorder - voice message capture for the chat.

States: IDLE -> REQUESTING_PERMISSION -> RECORDING -> STOPPED -> IDLE.
Audio chunks are buffered while recording and flushed into a single base64
data URI on stop. The microphone itself is abstracted behind ``Microphone``
so the state machine runs the same against a real device or a fake.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional

from ..core.errors import PermissionDeniedError
from ..utils.media import encode_data_uri

logger = logging.getLogger(__name__)


class RecordingState(str, Enum):
    IDLE = "idle"
    REQUESTING_PERMISSION = "requesting_permission"
    RECORDING = "recording"
    STOPPED = "stopped"


class MicrophonePermissionError(PermissionDeniedError):
    title = "Microphone Access Denied"


class MicrophoneStream(ABC):
    """An open capture stream delivering encoded audio chunks."""

    mime_type: str = "audio/webm"

    @abstractmethod
    def start(self, on_chunk: Callable[[bytes], None]) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop capturing; any buffered data is delivered to ``on_chunk`` first."""
        pass

    @abstractmethod
    def release(self) -> None:
        """Release the device (stop all tracks)."""
        pass


class Microphone(ABC):

    @abstractmethod
    async def open(self) -> MicrophoneStream:
        """
        Ask for access and open a stream. Waits for user consent.

        Raises:
            MicrophonePermissionError: If access is denied
        """
        pass


class AudioRecorder:
    """Single-recording state machine on top of a ``Microphone``."""

    def __init__(self, microphone: Microphone):
        self.microphone = microphone
        self.state = RecordingState.IDLE
        self.permission_denied = False
        self.audio_data_uri: Optional[str] = None
        self._stream: Optional[MicrophoneStream] = None
        self._chunks: List[bytes] = []
        # bumped by close(); a pending open() from an older generation is dropped
        self._generation = 0

    @property
    def is_recording(self) -> bool:
        return self.state == RecordingState.RECORDING

    @property
    def has_audio(self) -> bool:
        return self.audio_data_uri is not None

    async def toggle(self) -> RecordingState:
        """Start or stop recording. Ignored while waiting for permission."""
        if self.state == RecordingState.REQUESTING_PERMISSION:
            return self.state
        if self.state == RecordingState.RECORDING:
            await self.stop()
        else:
            await self.start()
        return self.state

    async def start(self) -> bool:
        """
        Request the microphone and start recording. Discards any previous clip.

        Returns:
            bool: False if microphone access was denied
        """
        if self.state in (RecordingState.REQUESTING_PERMISSION, RecordingState.RECORDING):
            return False

        self.discard_audio()
        self.state = RecordingState.REQUESTING_PERMISSION
        generation = self._generation
        try:
            stream = await self.microphone.open()
        except MicrophonePermissionError as e:
            logger.info(f"Microphone access denied: {e.description}")
            if generation == self._generation:
                self.permission_denied = True
                self.state = RecordingState.IDLE
            return False

        if generation != self._generation:
            logger.debug("Recorder closed while waiting for the microphone")
            stream.release()
            return False

        self.permission_denied = False
        self._stream = stream
        self._chunks = []
        stream.start(self._chunks.append)
        self.state = RecordingState.RECORDING
        return True

    async def stop(self) -> Optional[str]:
        """
        Stop recording and build the audio data URI.

        Returns:
            The recorded clip, or None if nothing was captured
        """
        if self.state != RecordingState.RECORDING or self._stream is None:
            return self.audio_data_uri

        stream = self._stream
        try:
            await stream.stop()
        except Exception:
            self._chunks = []
            self.state = RecordingState.IDLE
            raise
        finally:
            stream.release()
            self._stream = None

        audio = b"".join(self._chunks)
        self._chunks = []
        if not audio:
            self.state = RecordingState.IDLE
            return None

        self.audio_data_uri = encode_data_uri(audio, stream.mime_type)
        self.state = RecordingState.STOPPED
        logger.debug(f"Recorded {len(audio)} bytes of {stream.mime_type}")
        return self.audio_data_uri

    async def check_permission(self) -> bool:
        """
        Re-check microphone access without recording.
        The stream opened for the check is released immediately.
        """
        if self.is_recording:
            return True
        try:
            stream = await self.microphone.open()
        except MicrophonePermissionError:
            self.permission_denied = True
            return False
        stream.release()
        self.permission_denied = False
        return True

    def discard_audio(self) -> None:
        """Drop the recorded clip and go back to IDLE."""
        self.audio_data_uri = None
        if self.state == RecordingState.STOPPED:
            self.state = RecordingState.IDLE

    def close(self) -> None:
        """Tear down: release the microphone and drop any partial recording."""
        self._generation += 1
        if self._stream is not None:
            self._stream.release()
            self._stream = None
        self._chunks = []
        if self.state in (RecordingState.RECORDING, RecordingState.REQUESTING_PERMISSION):
            self.state = RecordingState.IDLE
